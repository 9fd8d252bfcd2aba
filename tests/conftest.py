import os
import sys

import pytest

# Ensure repository root importable early
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from dungeon_assembler.generators.layout.host import HostAdapter  # noqa: E402


class RecordingHost(HostAdapter):
    """Host adapter that records every call the engine makes."""

    def __init__(self):
        self.spawned = []
        self.despawned = []
        self.deactivated = []

    def spawn(self, template, position, rotation):
        handle = f"obj{len(self.spawned)}"
        self.spawned.append((handle, template.name, tuple(position), rotation))
        return handle

    def despawn(self, handle):
        self.despawned.append(handle)

    def deactivate_door(self, handle, door):
        self.deactivated.append((handle, door.id))


@pytest.fixture()
def recording_host():
    return RecordingHost()

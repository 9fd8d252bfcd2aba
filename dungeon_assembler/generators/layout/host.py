"""
Host runtime adapter.

The layout engine never creates scene objects itself. It calls a HostAdapter
when a room is committed, when a session is discarded, and when the cleanup
pass retires an unused door. The default adapter does nothing, which is what
headless generation (tests, CLI, exports) needs.
"""

from __future__ import annotations

from typing import Any, Tuple


class HostAdapter:
    """Bridge between the layout engine and whatever materialises rooms."""

    def spawn(self, template, position: Tuple[float, float, float], rotation: int) -> Any:
        """Create the runtime object for a committed room; return its handle."""
        return None

    def despawn(self, handle: Any) -> None:
        """Destroy a runtime object previously returned by spawn()."""

    def deactivate_door(self, handle: Any, door) -> None:
        """Remove or hide an unused door on a spawned room."""


NULL_HOST = HostAdapter()

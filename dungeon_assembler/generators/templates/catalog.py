"""
Room catalogs and the catalog registry.

A RoomCatalog is the set of templates one generation session draws from:
one start room, one destination room, and an ordered pool of normal rooms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dungeon_assembler.generators.layout.layout_types import RoomRole, RoomTemplate

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Raised when a catalog is structurally invalid."""


@dataclass
class RoomCatalog:
    """Templates available to a layout session.

    Attributes:
        name: Catalog name (registry key)
        start: Template committed first, at the origin
        destination: Mandatory terminal room, placed exactly once
        rooms: Normal room pool, drawn uniformly at random
        description: Free text shown by the CLI
    """
    name: str
    start: RoomTemplate
    destination: RoomTemplate
    rooms: List[RoomTemplate] = field(default_factory=list)
    description: str = ""

    def __post_init__(self):
        self.rooms = list(self.rooms)
        errors = self.check()
        if errors:
            raise CatalogError(f"Invalid catalog '{self.name}': {'; '.join(errors)}")
        if not self.rooms:
            logger.warning("Catalog '%s' has an empty normal room pool", self.name)

    def check(self) -> List[str]:
        """Return a list of structural problems (empty if the catalog is usable)."""
        errors = []
        if self.start is None:
            errors.append("start template is required")
        elif self.start.role != RoomRole.START:
            errors.append(f"start template '{self.start.name}' has role {self.start.role.value}")
        if self.destination is None:
            errors.append("destination template is required")
        elif self.destination.role != RoomRole.DESTINATION:
            errors.append(f"destination template '{self.destination.name}' "
                          f"has role {self.destination.role.value}")

        for template in self.rooms:
            if template is self.destination or template.is_destination:
                errors.append(f"destination template '{template.name}' must not be in the room pool")
            elif template.is_start:
                errors.append(f"start template '{template.name}' must not be in the room pool")

        # Connections and audits address doors by id
        for template in self.all_templates():
            ids = [d.id for d in template.doors]
            repeated = sorted({i for i in ids if ids.count(i) > 1})
            if repeated:
                errors.append(f"template '{template.name}' repeats door id(s): {', '.join(repeated)}")

        names = [t.name for t in self.all_templates()]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"duplicate template names: {', '.join(duplicates)}")
        return errors

    def all_templates(self) -> List[RoomTemplate]:
        templates = [t for t in (self.start, self.destination) if t is not None]
        return templates + list(self.rooms)

    def get_template(self, name: str) -> Optional[RoomTemplate]:
        for template in self.all_templates():
            if template.name == name:
                return template
        return None


class CatalogRegistry:
    """Registry mapping names to room catalogs."""

    def __init__(self):
        self._catalogs: Dict[str, RoomCatalog] = {}

    def register(self, catalog: RoomCatalog):
        """Register a catalog (replaces any catalog of the same name)."""
        if catalog.name in self._catalogs:
            logger.info("Replacing registered catalog '%s'", catalog.name)
        self._catalogs[catalog.name] = catalog

    def get_catalog(self, name: str) -> Optional[RoomCatalog]:
        """Get a catalog by name (case-insensitive)."""
        if name in self._catalogs:
            return self._catalogs[name]
        lowered = name.lower()
        for key, catalog in self._catalogs.items():
            if key.lower() == lowered:
                return catalog
        return None

    def list_catalogs(self) -> List[str]:
        """Sorted list of catalog names."""
        return sorted(self._catalogs.keys())


# Global singleton
CATALOG_REGISTRY = CatalogRegistry()

# Import and register built-in catalogs
from .builtin import register_builtin_catalogs  # noqa: E402
register_builtin_catalogs(CATALOG_REGISTRY)

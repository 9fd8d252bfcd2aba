"""
Catalog persistence layer.

Catalogs are stored as JSON documents:

    {
      "name": "crypt",
      "description": "...",
      "start": {<template>},
      "destination": {<template>},
      "rooms": [{<template>}, ...]
    }

Each template is RoomTemplate.to_dict(): name, role, doors, bounds.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dungeon_assembler.generators.layout.layout_types import RoomRole, RoomTemplate

from .catalog import CatalogError, RoomCatalog

logger = logging.getLogger(__name__)


def catalog_to_dict(catalog: RoomCatalog) -> Dict[str, Any]:
    """Convert a RoomCatalog to a JSON-serializable dictionary."""
    return {
        "name": catalog.name,
        "description": catalog.description,
        "start": catalog.start.to_dict(),
        "destination": catalog.destination.to_dict(),
        "rooms": [t.to_dict() for t in catalog.rooms],
    }


def _template_with_role(data: Dict[str, Any], role: RoomRole) -> RoomTemplate:
    data = dict(data)
    data.setdefault("role", role.value)
    return RoomTemplate.from_dict(data)


def catalog_from_dict(data: Dict[str, Any]) -> RoomCatalog:
    """Create a RoomCatalog from a dictionary.

    Raises:
        CatalogError: If required keys are missing or the catalog is invalid
    """
    try:
        return RoomCatalog(
            name=data.get("name", "custom"),
            description=data.get("description", ""),
            start=_template_with_role(data["start"], RoomRole.START),
            destination=_template_with_role(data["destination"], RoomRole.DESTINATION),
            rooms=[_template_with_role(t, RoomRole.NORMAL) for t in data.get("rooms", [])],
        )
    except CatalogError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise CatalogError(f"Malformed catalog data: {e}") from e


def save_catalog(catalog: RoomCatalog, file_path: Union[str, Path]) -> Path:
    """
    Save a catalog as JSON.

    Args:
        catalog: The catalog to save
        file_path: Destination file (parent directories are created)

    Returns:
        Path to the saved file

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(catalog_to_dict(catalog), f, indent=2, ensure_ascii=False)
    return path


def load_catalog(file_path: Union[str, Path]) -> Optional[RoomCatalog]:
    """
    Load a catalog from a JSON file.

    Args:
        file_path: Path to the catalog file

    Returns:
        RoomCatalog if found and valid, None otherwise
    """
    path = Path(file_path)
    if not path.exists():
        logger.error("Catalog file not found: %s", path)
        return None

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return catalog_from_dict(data)
    except (OSError, json.JSONDecodeError, CatalogError) as e:
        logger.error("Failed to load catalog %s: %s", path, e)
        return None

"""
Room template catalogs: the templates a layout session draws from.
"""

from .catalog import CATALOG_REGISTRY, CatalogError, CatalogRegistry, RoomCatalog
from .storage import catalog_from_dict, catalog_to_dict, load_catalog, save_catalog

__all__ = [
    'RoomCatalog',
    'CatalogRegistry',
    'CatalogError',
    'CATALOG_REGISTRY',
    'catalog_to_dict',
    'catalog_from_dict',
    'save_catalog',
    'load_catalog',
]

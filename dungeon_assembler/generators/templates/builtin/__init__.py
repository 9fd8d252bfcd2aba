"""
Built-in room catalogs.
"""

from .crypt import CRYPT_CATALOG
from .keep import KEEP_CATALOG


def register_builtin_catalogs(registry):
    """Register all built-in catalogs with the registry."""
    registry.register(CRYPT_CATALOG)
    registry.register(KEEP_CATALOG)


__all__ = [
    'CRYPT_CATALOG',
    'KEEP_CATALOG',
    'register_builtin_catalogs',
]

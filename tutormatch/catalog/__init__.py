"""Course and tutor catalog boundary."""

from .base import CatalogError, CatalogSource
from .file_catalog import YAMLCatalog

__all__ = ["CatalogSource", "CatalogError", "YAMLCatalog"]

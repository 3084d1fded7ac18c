"""Catalogs — per-creator series, assets and tags, and the factory that provisions them.

The catalog layer provides:
- Series: created once, description editable, listed in creation order
- Assets: registered once with tags, optionally grouped under a series
- Pagination: bounded pages over insertion-ordered indexes
- Provisioning: one catalog per creator, wired to the name registry
"""

from provreg.catalog.catalog import MAX_DESCRIPTION_LENGTH, Catalog
from provreg.catalog.factory import CatalogFactory
from provreg.catalog.pagination import MAX_PAGE_SIZE

__all__ = ["Catalog", "CatalogFactory", "MAX_DESCRIPTION_LENGTH", "MAX_PAGE_SIZE"]

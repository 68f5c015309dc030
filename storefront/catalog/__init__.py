"""
Catalog package for the storefront API.

This package holds the product store, the search indices derived from
it, the query pipeline that filters, sorts and paginates over those
indices, and the REST routes exposing them under ``/api/products``.
The store keeps everything in memory; the indices are rebuilt in full
after every change to the catalog.
"""

from .router import router as catalog_router  # noqa: F401

"""Catalog sessions used by reverse engineering."""

from erschema.catalog.session import CatalogSession, SQLAlchemyCatalogSession, open_catalog_session

__all__ = ["CatalogSession", "SQLAlchemyCatalogSession", "open_catalog_session"]

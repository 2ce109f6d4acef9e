"""Process-wide store and classifier instances."""

import structlog

from product_catalog.domain.ports import CatalogStore, Classifier
from product_catalog.infrastructure.classifier import build_classifier
from product_catalog.infrastructure.config import settings

logger = structlog.get_logger()

# Global instances
_catalog_store: CatalogStore | None = None
_classifier: Classifier | None = None


def get_catalog_store() -> CatalogStore:
    """Get the catalog store singleton for the configured backend.

    Returns:
        SqlCatalogStore or InMemoryCatalogStore.
    """
    global _catalog_store
    if _catalog_store is None:
        if settings.store_backend == "memory":
            from product_catalog.infrastructure.memory_store import InMemoryCatalogStore

            _catalog_store = InMemoryCatalogStore()
        else:
            from product_catalog.infrastructure.database import get_session_factory
            from product_catalog.infrastructure.sql_store import SqlCatalogStore

            _catalog_store = SqlCatalogStore(get_session_factory())
        logger.info("Catalog store ready", backend=settings.store_backend)
    return _catalog_store


def get_classifier() -> Classifier:
    """Get the classifier singleton.

    Returns:
        GeminiClassifier built from settings.
    """
    global _classifier
    if _classifier is None:
        _classifier = build_classifier()
    return _classifier


def override_providers(
    store: CatalogStore | None = None,
    classifier: Classifier | None = None,
) -> None:
    """Replace the singletons (used by tests and scripts)."""
    global _catalog_store, _classifier
    _catalog_store = store
    _classifier = classifier

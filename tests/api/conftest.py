"""Shared fixtures for API tests."""

import asyncio
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from product_catalog.infrastructure.memory_store import InMemoryCatalogStore
from product_catalog.infrastructure.providers import override_providers
from product_catalog.infrastructure.reference_data import seed_reference_data
from product_catalog.main import app


@pytest.fixture
def api_store() -> InMemoryCatalogStore:
    """Seeded in-memory store backing the app."""
    catalog = InMemoryCatalogStore()
    asyncio.run(seed_reference_data(catalog))
    return catalog


@pytest.fixture
def api_classifier(make_classifier, make_allergens):
    """Classifier that detects MILK in every product."""
    return make_classifier(allergens=make_allergens("MILK"))


@pytest.fixture
def client(api_store, api_classifier) -> Iterator[TestClient]:
    """Create test client wired to the in-memory store."""
    override_providers(store=api_store, classifier=api_classifier)
    yield TestClient(app)
    override_providers()

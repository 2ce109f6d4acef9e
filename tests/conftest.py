"""Shared fixtures: seeded in-memory store and a scripted classifier."""

from collections.abc import Sequence

import pytest
import pytest_asyncio

from product_catalog.domain.entities import (
    AllergenIdentification,
    CategorySuggestion,
    Confidence,
)
from product_catalog.infrastructure.memory_store import InMemoryCatalogStore
from product_catalog.infrastructure.reference_data import seed_reference_data

ENTERPRISE_ID = "ent-1"
OTHER_ENTERPRISE_ID = "ent-2"


class FakeClassifier:
    """Classifier returning preset results and recording its calls."""

    def __init__(
        self,
        allergens: AllergenIdentification | None = None,
        suggestion: CategorySuggestion | None = None,
        allergen_error: Exception | None = None,
        suggestion_error: Exception | None = None,
    ) -> None:
        self.allergens = allergens or AllergenIdentification.empty("Classifier not configured")
        self.suggestion = suggestion or CategorySuggestion.empty("Classifier not configured")
        self.allergen_error = allergen_error
        self.suggestion_error = suggestion_error
        self.allergen_calls: list[str] = []
        self.suggestion_calls: list[tuple[str, list[str]]] = []

    async def identify_allergens(self, text: str) -> AllergenIdentification:
        self.allergen_calls.append(text)
        if self.allergen_error:
            raise self.allergen_error
        return self.allergens

    async def suggest_category(
        self, product_name: str, candidates: Sequence[str]
    ) -> CategorySuggestion:
        self.suggestion_calls.append((product_name, list(candidates)))
        if self.suggestion_error:
            raise self.suggestion_error
        return self.suggestion


def allergens_result(*codes: str, confidence: Confidence = Confidence.HIGH) -> AllergenIdentification:
    """Build a classifier allergen result."""
    return AllergenIdentification(codes=codes, confidence=confidence, reasoning="test")


@pytest_asyncio.fixture
async def store() -> InMemoryCatalogStore:
    """In-memory store seeded with reference categories and allergens."""
    catalog = InMemoryCatalogStore()
    await seed_reference_data(catalog)
    return catalog


@pytest_asyncio.fixture
async def empty_store() -> InMemoryCatalogStore:
    """In-memory store without reference data."""
    return InMemoryCatalogStore()


@pytest.fixture
def classifier() -> FakeClassifier:
    """Unconfigured-like classifier: no allergens, no category."""
    return FakeClassifier()


@pytest.fixture
def make_classifier() -> type[FakeClassifier]:
    """Factory for scripted classifiers."""
    return FakeClassifier


@pytest.fixture
def make_allergens():
    """Factory for classifier allergen results."""
    return allergens_result

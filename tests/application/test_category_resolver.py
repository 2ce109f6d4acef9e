"""Tests for category hint resolution."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from product_catalog.application.category_resolver import (
    AUTO_CREATED_DESCRIPTION,
    FALLBACK_DESCRIPTION,
    CategoryResolver,
)
from product_catalog.domain.entities import Category
from product_catalog.domain.exceptions import ConflictError


class TestResolve:
    """Tests for CategoryResolver.resolve against the in-memory store."""

    @pytest.mark.asyncio
    async def test_contains_match(self, store) -> None:
        """Should match an existing category containing the hint."""
        resolver = CategoryResolver(store)
        expected = await store.find_category_by_name_equals_ci("Pescados y Mariscos")

        assert await resolver.resolve("  mariscos ") == expected.id

    @pytest.mark.asyncio
    async def test_creates_category_for_unknown_hint(self, store) -> None:
        """Should create a category named after the trimmed hint."""
        resolver = CategoryResolver(store)

        category_id = await resolver.resolve("  Frutas ")

        category = await store.get_category(category_id)
        assert category.name == "Frutas"
        assert category.description == AUTO_CREATED_DESCRIPTION

    @pytest.mark.asyncio
    async def test_blank_hint_uses_fallback(self, store) -> None:
        """Should create the fallback category once and then reuse it."""
        resolver = CategoryResolver(store, fallback_name="Otros")

        first = await resolver.resolve(None)
        second = await resolver.resolve("   ")

        assert first == second
        category = await store.get_category(first)
        assert category.name == "Otros"
        assert category.description == FALLBACK_DESCRIPTION

    @pytest.mark.asyncio
    async def test_fallback_matched_case_insensitively(self, store) -> None:
        """Should reuse an existing fallback category regardless of case."""
        existing = await store.create_category("OTROS")
        resolver = CategoryResolver(store, fallback_name="Otros")

        assert await resolver.resolve("") == existing.id


class TestCreationRace:
    """Tests for recovering from a concurrent category insert."""

    @pytest.mark.asyncio
    async def test_conflict_rereads_winner(self) -> None:
        """Should return the winner's id after a unique-name conflict."""
        store = MagicMock()
        store.find_category_by_name_contains_ci = AsyncMock(return_value=None)
        store.create_category = AsyncMock(side_effect=ConflictError("categories_name_key"))
        store.find_category_by_name_equals_ci = AsyncMock(
            return_value=Category(id="c-9", name="Frutas")
        )
        resolver = CategoryResolver(store)

        assert await resolver.resolve("Frutas") == "c-9"
        store.find_category_by_name_equals_ci.assert_awaited_once_with("Frutas")

    @pytest.mark.asyncio
    async def test_conflict_without_winner_is_raised(self) -> None:
        """Should propagate the conflict when the winner cannot be read back."""
        store = MagicMock()
        store.find_category_by_name_contains_ci = AsyncMock(return_value=None)
        store.create_category = AsyncMock(side_effect=ConflictError("categories_name_key"))
        store.find_category_by_name_equals_ci = AsyncMock(return_value=None)
        resolver = CategoryResolver(store)

        with pytest.raises(ConflictError):
            await resolver.resolve("Frutas")

"""Stock reconciliation service.

Applies signed stock deltas to many products at once. Missing products
are reported per item; every valid item is written in a single store
transaction, so either all of them change or none do.
"""

from collections.abc import Mapping, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import structlog

from product_catalog.domain.entities import (
    StockAdjustment,
    StockItemResult,
    StockLevel,
    StockUpdateOutcome,
)
from product_catalog.domain.ports import CatalogStore

logger = structlog.get_logger()

PRODUCT_NOT_FOUND = "Product not found"

# Matches the Numeric(12, 3) stock column
STOCK_PRECISION = Decimal("0.001")

StockInput = (
    StockAdjustment
    | Mapping[str, Any]
    | Sequence[StockAdjustment | Mapping[str, Any]]
)


def _to_adjustment(item: StockAdjustment | Mapping[str, Any]) -> StockAdjustment:
    if isinstance(item, StockAdjustment):
        return item
    return StockAdjustment(
        product_id=str(item["productId"]),
        quantity=Decimal(str(item["quantity"])),
    )


def normalize_stock_input(data: StockInput) -> list[StockAdjustment]:
    """Collapse the single-item and list call shapes into a list."""
    if isinstance(data, (StockAdjustment, Mapping)):
        return [_to_adjustment(data)]
    return [_to_adjustment(item) for item in data]


def clamp_stock(current: Decimal, delta: Decimal) -> Decimal:
    """New stock after applying ``delta``, floored at zero and rounded to the stored precision."""
    return max(Decimal("0"), current + delta).quantize(STOCK_PRECISION, rounding=ROUND_HALF_UP)


class StockReconciliationService:
    """Batch stock adjustment with per-item missing-product reporting.

    Example usage:
        service = StockReconciliationService(store)
        outcome = await service.update_stock([
            StockAdjustment("p1", Decimal("5")),
            StockAdjustment("p2", Decimal("-3")),
        ])
    """

    def __init__(self, store: CatalogStore, request_id: str | None = None) -> None:
        self.store = store
        self.request_id = request_id

    async def update_stock(self, data: StockInput) -> StockUpdateOutcome:
        """Apply stock deltas.

        Args:
            data: One adjustment or a sequence of them; dicts with
                ``productId``/``quantity`` are accepted too.

        Returns:
            Outcome with successes first (input order) followed by
            missing-product failures; ``success`` is False when any
            product was missing.

        Raises:
            CatalogError: If the store transaction fails. Nothing is
                committed in that case.
        """
        items = normalize_stock_input(data)

        products = await self.store.find_products_by_ids(item.product_id for item in items)
        by_id = {p.id: p for p in products}

        levels: list[StockLevel] = []
        previous: list[Decimal] = []
        missing: list[StockItemResult] = []

        # Running stock per product so repeated ids accumulate
        running: dict[str, Decimal] = {}
        for item in items:
            product = by_id.get(item.product_id)
            if product is None:
                missing.append(
                    StockItemResult(
                        product_id=item.product_id,
                        new_stock=Decimal("0"),
                        success=False,
                        error=PRODUCT_NOT_FOUND,
                    )
                )
                continue

            current = running.get(item.product_id, product.stock)
            new_stock = clamp_stock(current, item.quantity)
            running[item.product_id] = new_stock
            levels.append(StockLevel(product_id=item.product_id, new_stock=new_stock))
            previous.append(current)

        if not levels:
            logger.warning(
                "Stock update with no known products",
                product_ids=[r.product_id for r in missing],
                request_id=self.request_id,
            )
            return StockUpdateOutcome(success=False, results=missing)

        updated = await self.store.update_products_stock_atomically(levels)

        results: list[StockItemResult] = []
        for level, before, product in zip(levels, previous, updated):
            logger.info(
                "Stock updated",
                product_id=product.id,
                previous_stock=str(before),
                new_stock=str(level.new_stock),
                applied_delta=str(level.new_stock - before),
                request_id=self.request_id,
            )
            results.append(
                StockItemResult(product_id=product.id, new_stock=level.new_stock, success=True)
            )

        return StockUpdateOutcome(success=not missing, results=results + missing)

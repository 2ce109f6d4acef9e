"""Product API endpoints.

CRUD for tenant products plus the document-analysis operations:
find-or-create, batch stock adjustment and allergen identification.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, Request, status

from product_catalog.api.schemas import (
    BulkStockRequest,
    ErrorResponse,
    FindOrCreateRequest,
    IdentifyAllergensRequest,
    MessageResponse,
    ProductCreateRequest,
    ProductUpdateRequest,
    StockItemRequest,
)
from product_catalog.application.catalog_service import ProductService
from product_catalog.application.product_resolution import ProductResolutionService
from product_catalog.application.stock_service import StockReconciliationService
from product_catalog.infrastructure.config import settings
from product_catalog.infrastructure.providers import get_catalog_store, get_classifier

router = APIRouter(prefix="/products", tags=["Products"])


# ============================================================================
# Dependencies
# ============================================================================


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def get_product_service() -> ProductService:
    """Get product CRUD service."""
    return ProductService(get_catalog_store())


def get_resolution_service(request: Request) -> ProductResolutionService:
    """Get product resolution service with request ID."""
    return ProductResolutionService(
        get_catalog_store(),
        get_classifier(),
        request_id=_request_id(request),
    )


def get_stock_service(request: Request) -> StockReconciliationService:
    """Get stock reconciliation service with request ID."""
    return StockReconciliationService(get_catalog_store(), request_id=_request_id(request))


# ============================================================================
# Document-analysis Endpoints
# ============================================================================


@router.post(
    "/find-or-create",
    responses={409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="products.findOrCreate",
    description=(
        "Resolve a product by EAN, then by case-insensitive name, creating it "
        "with suggested category and allergens when neither matches."
    ),
)
async def find_or_create_product(
    body: FindOrCreateRequest,
    service: Annotated[ProductResolutionService, Depends(get_resolution_service)],
) -> dict[str, Any]:
    """Find or create a product from partial identifying data."""
    return await service.find_or_create(
        name=body.name,
        enterprise_id=body.enterprise_id,
        ean_code=body.ean_code,
        category_hint=body.category_name,
    )


@router.post(
    "/stock",
    responses={500: {"model": ErrorResponse}},
    summary="products.updateStock",
    description=(
        "Apply signed stock deltas. Accepts one item, a list of items or "
        "{items: [...]}. Known products are updated in a single transaction; "
        "unknown ones are reported per item."
    ),
)
async def update_stock(
    body: Annotated[
        StockItemRequest | list[StockItemRequest] | BulkStockRequest,
        Body(),
    ],
    service: Annotated[StockReconciliationService, Depends(get_stock_service)],
) -> dict[str, Any]:
    """Adjust stock for one or many products."""
    if isinstance(body, BulkStockRequest):
        items = [item.to_domain() for item in body.items]
    elif isinstance(body, list):
        items = [item.to_domain() for item in body]
    else:
        items = [body.to_domain()]

    outcome = await service.update_stock(items)
    return outcome.to_dict()


@router.post(
    "/identify-allergens",
    summary="products.identifyAllergens",
    description="Run allergen identification on free text.",
)
async def identify_allergens(
    body: IdentifyAllergensRequest,
    service: Annotated[ProductResolutionService, Depends(get_resolution_service)],
) -> dict[str, Any]:
    """Detect allergen codes and return the matching allergen records."""
    return await service.identify_allergens_for_product(body.description)


# ============================================================================
# CRUD Endpoints
# ============================================================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    summary="products.create",
)
async def create_product(
    body: ProductCreateRequest,
    service: Annotated[ProductService, Depends(get_product_service)],
) -> dict[str, Any]:
    """Create a product."""
    return await service.create(body.to_domain(settings.default_unit))


@router.get(
    "",
    summary="products.findAll",
    description="List an enterprise's products ordered by name.",
)
async def list_products(
    service: Annotated[ProductService, Depends(get_product_service)],
    enterprise_id: Annotated[str, Query(alias="enterpriseId", min_length=1)],
    search: Annotated[str | None, Query()] = None,
    category_id: Annotated[str | None, Query(alias="categoryId")] = None,
    allergen_id: Annotated[str | None, Query(alias="allergenId")] = None,
) -> list[dict[str, Any]]:
    """List products with optional filters."""
    return await service.find_all(
        enterprise_id,
        search=search,
        category_id=category_id,
        allergen_id=allergen_id,
    )


@router.get(
    "/{product_id}",
    responses={404: {"model": ErrorResponse}},
    summary="products.findOne",
)
async def get_product(
    product_id: str,
    service: Annotated[ProductService, Depends(get_product_service)],
    enterprise_id: Annotated[str | None, Query(alias="enterpriseId")] = None,
) -> dict[str, Any]:
    """Get a product, optionally scoped to an enterprise."""
    return await service.find_one(product_id, enterprise_id)


@router.patch(
    "/{product_id}",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="products.update",
)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    service: Annotated[ProductService, Depends(get_product_service)],
) -> dict[str, Any]:
    """Update a product's provided fields."""
    return await service.update(product_id, body.to_domain())


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="products.delete",
)
async def delete_product(
    product_id: str,
    service: Annotated[ProductService, Depends(get_product_service)],
) -> dict[str, str]:
    """Delete a product."""
    return await service.remove(product_id)

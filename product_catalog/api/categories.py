"""Category API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from product_catalog.api.schemas import (
    CategoryCreateRequest,
    CategoryUpdateRequest,
    ErrorResponse,
    MessageResponse,
)
from product_catalog.application.catalog_service import CategoryService
from product_catalog.infrastructure.providers import get_catalog_store

router = APIRouter(prefix="/categories", tags=["Categories"])


def get_category_service() -> CategoryService:
    """Get category CRUD service."""
    return CategoryService(get_catalog_store())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    summary="categories.create",
)
async def create_category(
    body: CategoryCreateRequest,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> dict[str, Any]:
    return await service.create(body.name, body.description)


@router.get(
    "",
    summary="categories.findAll",
    description="List categories ordered by name with their product counts.",
)
async def list_categories(
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> list[dict[str, Any]]:
    return await service.find_all()


@router.get(
    "/{category_id}",
    responses={404: {"model": ErrorResponse}},
    summary="categories.findOne",
)
async def get_category(
    category_id: str,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> dict[str, Any]:
    return await service.find_one(category_id)


@router.patch(
    "/{category_id}",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="categories.update",
)
async def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> dict[str, Any]:
    return await service.update(category_id, body.name, body.description)


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="categories.delete",
    description="Delete a category. Fails with 409 while products still reference it.",
)
async def delete_category(
    category_id: str,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> dict[str, str]:
    return await service.remove(category_id)

"""Allergen API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from product_catalog.api.schemas import (
    AllergenCreateRequest,
    AllergenUpdateRequest,
    ErrorResponse,
    MessageResponse,
)
from product_catalog.application.catalog_service import AllergenService
from product_catalog.infrastructure.providers import get_catalog_store

router = APIRouter(prefix="/allergens", tags=["Allergens"])


def get_allergen_service() -> AllergenService:
    """Get allergen CRUD service."""
    return AllergenService(get_catalog_store())


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    summary="allergens.create",
)
async def create_allergen(
    body: AllergenCreateRequest,
    service: Annotated[AllergenService, Depends(get_allergen_service)],
) -> dict[str, Any]:
    return await service.create(body.name, body.code, body.description)


@router.get("", summary="allergens.findAll")
async def list_allergens(
    service: Annotated[AllergenService, Depends(get_allergen_service)],
) -> list[dict[str, Any]]:
    return await service.find_all()


@router.get(
    "/{allergen_id}",
    responses={404: {"model": ErrorResponse}},
    summary="allergens.findOne",
)
async def get_allergen(
    allergen_id: str,
    service: Annotated[AllergenService, Depends(get_allergen_service)],
) -> dict[str, Any]:
    return await service.find_one(allergen_id)


@router.patch(
    "/{allergen_id}",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="allergens.update",
)
async def update_allergen(
    allergen_id: str,
    body: AllergenUpdateRequest,
    service: Annotated[AllergenService, Depends(get_allergen_service)],
) -> dict[str, Any]:
    return await service.update(allergen_id, body.name, body.code, body.description)


@router.delete(
    "/{allergen_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}},
    summary="allergens.delete",
)
async def delete_allergen(
    allergen_id: str,
    service: Annotated[AllergenService, Depends(get_allergen_service)],
) -> dict[str, str]:
    return await service.remove(allergen_id)

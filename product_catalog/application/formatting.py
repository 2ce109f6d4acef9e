"""Wire formatting of catalog entities."""

from typing import Any

from product_catalog.domain.entities import Allergen, Category, Product


def format_category(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
    }


def format_allergen(allergen: Allergen) -> dict[str, Any]:
    return {
        "id": allergen.id,
        "name": allergen.name,
        "code": allergen.code,
        "description": allergen.description,
    }


def format_product(product: Product) -> dict[str, Any]:
    """Render a product in the shape callers consume.

    Stock is rendered as a plain number and timestamps as ISO-8601.
    """
    return {
        "id": product.id,
        "name": product.name,
        "eanCode": product.ean_code,
        "description": product.description,
        "categoryId": product.category_id,
        "enterpriseId": product.enterprise_id,
        "unit": product.unit,
        "stock": float(product.stock) if product.stock is not None else 0,
        "category": format_category(product.category) if product.category else None,
        "allergens": [format_allergen(a) for a in product.allergens],
        "createdAt": product.created_at.isoformat(),
        "updatedAt": product.updated_at.isoformat(),
    }

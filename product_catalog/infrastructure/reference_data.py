"""Reference categories and EU allergens.

Seeded into every fresh catalog. Seeding is an upsert keyed on category
name and allergen code: existing rows are left untouched.
"""

import structlog

from product_catalog.domain.ports import CatalogStore

logger = structlog.get_logger()

REFERENCE_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Carnes", "Carnes y productos cárnicos"),
    ("Verduras", "Verduras y hortalizas"),
    ("Pescados y Mariscos", "Pescados frescos y mariscos"),
    ("Lácteos", "Productos lácteos"),
    ("Aseo", "Productos de limpieza y aseo"),
    ("Bebidas", "Bebidas alcohólicas y no alcohólicas"),
    ("Panadería", "Pan y productos de panadería"),
    ("Conservas", "Productos en conserva"),
)

# (code, name, description)
REFERENCE_ALLERGENS: tuple[tuple[str, str, str], ...] = (
    ("GLU", "Gluten", "Cereales que contienen gluten"),
    ("CRU", "Crustáceos", "Crustáceos y productos derivados"),
    ("EGG", "Huevos", "Huevos y productos derivados"),
    ("FISH", "Pescado", "Pescado y productos derivados"),
    ("PEA", "Cacahuetes", "Cacahuetes y productos derivados"),
    ("SOY", "Soja", "Soja y productos derivados"),
    ("MILK", "Lácteos", "Leche y productos derivados (incluida lactosa)"),
    ("NUTS", "Frutos de cáscara", "Frutos de cáscara (almendras, avellanas, nueces, etc.)"),
    ("CEL", "Apio", "Apio y productos derivados"),
    ("MUS", "Mostaza", "Mostaza y productos derivados"),
    ("SES", "Sésamo", "Granos de sésamo y productos derivados"),
    ("SUL", "Sulfitos", "Dióxido de azufre y sulfitos"),
    ("LUP", "Altramuces", "Altramuces y productos derivados"),
    ("MOL", "Moluscos", "Moluscos y productos derivados"),
)


async def seed_reference_data(store: CatalogStore) -> dict[str, int]:
    """Insert missing reference categories and allergens.

    Args:
        store: Catalog store to seed.

    Returns:
        Counts of newly created categories and allergens.
    """
    categories_created = 0
    for name, description in REFERENCE_CATEGORIES:
        if await store.find_category_by_name_equals_ci(name) is None:
            await store.create_category(name, description)
            categories_created += 1

    existing_codes = {
        a.code
        for a in await store.find_allergens_by_codes(code for code, _, _ in REFERENCE_ALLERGENS)
    }
    allergens_created = 0
    for code, name, description in REFERENCE_ALLERGENS:
        if code not in existing_codes:
            await store.create_allergen(name, code, description)
            allergens_created += 1

    logger.info(
        "Reference data seeded",
        categories_created=categories_created,
        allergens_created=allergens_created,
    )
    return {"categories": categories_created, "allergens": allergens_created}

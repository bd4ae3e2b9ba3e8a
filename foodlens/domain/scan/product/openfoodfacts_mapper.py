"""
OpenFoodFacts data mapper.

Transforms OpenFoodFacts API responses to domain models.
"""

from typing import Any, List, Optional

from foodlens.domain.scan.product.models import (
    Ingredient,
    Nutriments,
    ProductRecord,
)

# Query string for the product endpoint; keeps responses small.
PRODUCT_FIELDS = "product_name,brands,nutriments,image_url,ingredients,nutrition_grades"

# domain field -> OpenFoodFacts per-100g key
NUTRIMENT_KEYS = {
    "energy_kcal": "energy-kcal_100g",
    "fat": "fat_100g",
    "saturated_fat": "saturated-fat_100g",
    "carbohydrates": "carbohydrates_100g",
    "sugars": "sugars_100g",
    "fiber": "fiber_100g",
    "proteins": "proteins_100g",
    "salt": "salt_100g",
    "sodium": "sodium_100g",
}


class OpenFoodFactsMapper:
    """Maps OpenFoodFacts API data to domain models."""

    @staticmethod
    def parse_product_response(barcode: str, response_data: Any) -> Optional[ProductRecord]:
        """Parse an OpenFoodFacts product API response.

        Args:
            barcode: Barcode the lookup was made for
            response_data: Decoded JSON body

        Returns:
            ProductRecord, or None when the catalog reports no product

        Raises:
            ValueError: If the body is not a JSON object

        Example:
            >>> response = {
            ...     "status": 1,
            ...     "product": {
            ...         "product_name": "Coca-Cola",
            ...         "nutriments": {"sugars_100g": 10.6},
            ...     },
            ... }
            >>> product = OpenFoodFactsMapper.parse_product_response(
            ...     "5000112637922", response
            ... )
            >>> assert product.nutriments.sugars == 10.6
        """
        if not isinstance(response_data, dict):
            raise ValueError("OpenFoodFacts response is not a JSON object")

        status = response_data.get("status", 0)
        product_data = response_data.get("product")

        if status != 1 or not product_data or not isinstance(product_data, dict):
            return None

        return ProductRecord(
            barcode=str(product_data.get("code") or barcode),
            name=_clean_text(product_data.get("product_name")),
            brand=_clean_text(product_data.get("brands")),
            nutriments=OpenFoodFactsMapper.parse_nutriments(product_data.get("nutriments")),
            ingredients=OpenFoodFactsMapper.parse_ingredients(product_data.get("ingredients")),
            image_url=_clean_text(product_data.get("image_url")),
            nutrition_grade=_clean_text(product_data.get("nutrition_grades")),
        )

    @staticmethod
    def parse_nutriments(nutriments_data: Any) -> Nutriments:
        """Extract per-100g nutrient values.

        Values that are missing, non-numeric or negative are dropped.
        """
        if not isinstance(nutriments_data, dict):
            return Nutriments()

        values = {}
        for field, key in NUTRIMENT_KEYS.items():
            value = _to_float(nutriments_data.get(key))
            if value is not None and value >= 0:
                values[field] = value
        return Nutriments(**values)

    @staticmethod
    def parse_ingredients(ingredients_data: Any) -> List[Ingredient]:
        """Extract ingredient entries that carry text."""
        if not isinstance(ingredients_data, list):
            return []

        ingredients = []
        for raw in ingredients_data:
            if not isinstance(raw, dict):
                continue
            text = _clean_text(raw.get("text"))
            if not text:
                continue
            rank = raw.get("rank")
            ingredients.append(
                Ingredient(
                    text=text,
                    rank=rank if isinstance(rank, int) and rank >= 1 else None,
                    id=_clean_text(raw.get("id")),
                )
            )
        return ingredients


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()

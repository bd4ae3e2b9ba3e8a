"""
Product catalog domain models.

Structured product data retrieved by barcode from the nutrition
database. Only the Nutrition Database Client produces these.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Nutriments(BaseModel):
    """Nutrient facts per 100g. Every value is optional.

    Example:
        >>> nutriments = Nutriments(energy_kcal=42.0, sugars=10.6)
        >>> assert nutriments.fat is None
    """

    model_config = ConfigDict(frozen=True)

    energy_kcal: Optional[float] = Field(None, ge=0, description="Energy in kcal per 100g")
    fat: Optional[float] = Field(None, ge=0, description="Fat in g per 100g")
    saturated_fat: Optional[float] = Field(None, ge=0, description="Saturated fat in g per 100g")
    carbohydrates: Optional[float] = Field(None, ge=0, description="Carbohydrates in g per 100g")
    sugars: Optional[float] = Field(None, ge=0, description="Sugars in g per 100g")
    fiber: Optional[float] = Field(None, ge=0, description="Fiber in g per 100g")
    proteins: Optional[float] = Field(None, ge=0, description="Protein in g per 100g")
    salt: Optional[float] = Field(None, ge=0, description="Salt in g per 100g")
    sodium: Optional[float] = Field(None, ge=0, description="Sodium in g per 100g")

    def is_empty(self) -> bool:
        """True when no nutrient value is known."""
        return all(value is None for value in self.model_dump().values())


class Ingredient(BaseModel):
    """One entry of a product's ingredient list."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., min_length=1, description="Ingredient text as printed")
    rank: Optional[int] = Field(None, ge=1, description="Position on the label")
    id: Optional[str] = Field(None, description="Catalog taxonomy id (e.g. en:sugar)")


class ProductRecord(BaseModel):
    """Product data for one barcode.

    Example:
        >>> product = ProductRecord(
        ...     barcode="5000112637922",
        ...     name="Coca-Cola",
        ...     brand="Coca-Cola",
        ...     nutriments=Nutriments(energy_kcal=42.0, sugars=10.6),
        ...     ingredients=[Ingredient(text="Carbonated water", rank=1)],
        ... )
        >>> assert product.ingredient_texts() == ["Carbonated water"]
    """

    model_config = ConfigDict(frozen=True)

    barcode: str = Field(..., min_length=1, description="Barcode the product was found by")
    name: Optional[str] = Field(None, description="Product name")
    brand: Optional[str] = Field(None, description="Brand names")
    nutriments: Nutriments = Field(default_factory=Nutriments, description="Per-100g facts")
    ingredients: List[Ingredient] = Field(default_factory=list, description="Ingredient list")
    image_url: Optional[str] = Field(None, description="Product image URL")
    nutrition_grade: Optional[str] = Field(None, description="Catalog's own grade (a-e)")

    def ingredient_texts(self) -> List[str]:
        """Ingredient texts in label order.

        Ranked ingredients come first, sorted by rank; unranked ones
        keep their original relative order after them.
        """
        ranked = sorted(
            (i for i in self.ingredients if i.rank is not None),
            key=lambda i: i.rank or 0,
        )
        unranked = [i for i in self.ingredients if i.rank is None]
        return [i.text for i in ranked + unranked]

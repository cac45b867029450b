"""
Catalog data models.

Pydantic models for the reference collections (products, ingredients) and
for user-authored routines.
"""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class Product(BaseModel):
    """A hair-care product from the catalog."""
    id: str = Field(description="Product document id")
    name: str = Field(default="", description="Display name")
    brand: str = Field(default="", description="Brand name")
    category: Optional[str] = Field(default=None, description="Product category, e.g. 'Shampoos'")
    ingredients_normalized: List[str] = Field(default_factory=list, description="INCI names in label order")
    ingredient_refs: List[str] = Field(default_factory=list, description="Ingredient document ids")
    image_url: Optional[str] = Field(default=None, description="Product image")
    price: Optional[float] = Field(default=None, description="Price in store currency")


class Ingredient(BaseModel):
    """A cosmetic ingredient from the catalog."""
    id: str = Field(description="Ingredient document id")
    name: str = Field(description="Common name")
    inci_name: Optional[str] = Field(default=None, description="INCI name")


class Frequency(BaseModel):
    """How often a routine step is performed."""
    interval: int = Field(ge=1, description="Every N units")
    unit: Literal["day", "week", "month"] = Field(description="Interval unit")


class RoutineStep(BaseModel):
    """One step of a routine, referencing exactly one product."""
    order: int = Field(ge=0, description="Explicit position inside the routine")
    product_id: str = Field(min_length=1, description="Product used in this step")
    step_name: Optional[str] = Field(default=None, description="Category of the step, e.g. 'Conditioners'")
    frequency: Frequency = Field(description="How often the step is performed")
    notes: Optional[str] = Field(default=None, description="Free-form notes")


class Routine(BaseModel):
    """A user-authored hair-care routine."""
    id: str = Field(description="Routine document id")
    user_id: str = Field(description="Owner user id")
    name: str = Field(min_length=1, description="Routine name")
    description: str = Field(default="", description="Routine description")
    follicle_id: str = Field(min_length=1, description="Follicle id of the hair this routine was built for")
    is_public: bool = Field(default=True, description="Visible to other users")
    steps: List[RoutineStep] = Field(min_length=1, description="Steps; order is given by RoutineStep.order")
    created_at: Optional[str] = Field(default=None, description="Creation time (ISO format)")
    updated_at: Optional[str] = Field(default=None, description="Last update time (ISO format)")
    deleted_at: Optional[str] = Field(default=None, description="Soft-delete marker (ISO format)")
    adapted_from: Optional[str] = Field(default=None, description="Source routine of an adapted copy")

    def ordered_steps(self) -> List[RoutineStep]:
        """Steps sorted by their explicit order field."""
        return sorted(self.steps, key=lambda step: step.order)

    def product_ids(self) -> List[str]:
        """Unique product ids in step order."""
        seen = set()
        ids = []
        for step in self.ordered_steps():
            if step.product_id not in seen:
                seen.add(step.product_id)
                ids.append(step.product_id)
        return ids

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

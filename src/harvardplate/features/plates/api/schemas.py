from typing import List, Optional

from pydantic import Field

from harvardplate.features.recipes.domain.models import CamelModel, Ingredient, RecipeResponse


class SavePlatePayload(CamelModel):
    user_id: Optional[int] = Field(default=None, gt=0)
    ingredients: List[Ingredient] = Field(..., min_length=1)
    name: Optional[str] = Field(default=None, max_length=100)
    recipe_data: Optional[RecipeResponse] = None

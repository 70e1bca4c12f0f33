from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from harvardplate.features.recipes.domain.models import CamelModel, Ingredient, RecipeResponse


class PlateRecord(CamelModel):
    id: str
    telegram_id: int
    name: Optional[str] = None
    ingredients: List[Ingredient]
    recipe_data: Optional[RecipeResponse] = None
    created_at: datetime

from typing import Optional

from pydantic import Field

from harvardplate.features.recipes.domain.models import CamelModel, IngredientCategory


class CreateUserPayload(CamelModel):
    telegram_id: int = Field(..., gt=0, strict=True)
    username: Optional[str] = Field(default=None, min_length=1, max_length=100)


class AddIngredientPayload(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: IngredientCategory

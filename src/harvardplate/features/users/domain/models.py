from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from harvardplate.features.recipes.domain.models import CamelModel, IngredientCategory


class UserRecord(CamelModel):
    telegram_id: int = Field(..., gt=0)
    username: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserIngredientRecord(CamelModel):
    id: str
    telegram_id: int
    name: str
    category: IngredientCategory
    created_at: datetime


class UserStats(CamelModel):
    ingredients: int = 0
    plates: int = 0
    recipe_requests: int = 0

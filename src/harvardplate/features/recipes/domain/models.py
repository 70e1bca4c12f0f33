"""
Typed records for recipe generation.

Python attributes are snake_case; JSON uses the camelCase names clients send
(`cookingTime`, `nutritionalInfo`, ...). Both spellings are accepted on input.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from harvardplate.shared.llm.openai_client import TokenUsage


class IngredientCategory(str, Enum):
    VEGETABLE = "vegetable"
    GRAIN = "grain"
    PROTEIN = "protein"
    FAT = "fat"


Difficulty = Literal["easy", "medium", "hard"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
    )


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(frozen=True)


class Ingredient(FrozenCamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: IngredientCategory


class RecipeGenerationRequest(FrozenCamelModel):
    ingredients: List[Ingredient] = Field(..., min_length=1, max_length=15)
    user_prompt: Optional[str] = Field(default=None, max_length=500)
    dietary_preferences: Optional[List[str]] = None
    cooking_time: Optional[int] = Field(default=None, ge=5, le=240, description="Minutes")


class RecipeIngredient(FrozenCamelModel):
    # Model output is kept as written.
    model_config = ConfigDict(str_strip_whitespace=False)

    name: str
    quantity: str = ""
    category: IngredientCategory


class NutritionalInfo(FrozenCamelModel):
    # Defaults stand in for any value the model reply leaves out.
    calories: float = Field(default=350, ge=0)
    proteins: float = Field(default=20, ge=0)
    carbs: float = Field(default=40, ge=0)
    fats: float = Field(default=15, ge=0)
    fiber: float = Field(default=8, ge=0)


class RecipeDraft(FrozenCamelModel):
    """A parsed recipe body before it is given an id and usage stats."""

    model_config = ConfigDict(str_strip_whitespace=False)

    title: str
    description: str = ""
    cooking_time: int = Field(default=30, ge=0)
    difficulty: Difficulty = "medium"
    ingredients: List[RecipeIngredient] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    nutritional_info: NutritionalInfo = Field(default_factory=NutritionalInfo)
    plate_analysis: str = ""
    tips: List[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return bool(self.title and self.ingredients and self.steps)


class RecipeResponse(RecipeDraft):
    id: str
    usage: Optional[TokenUsage] = None
    created: Optional[int] = None


class RecipeHistoryRecord(CamelModel):
    """One stored generation: the validated request with the recipe it produced."""

    id: str
    telegram_id: int
    request_data: RecipeGenerationRequest
    response_data: Optional[RecipeResponse] = None
    usage: Optional[TokenUsage] = None
    created_at: datetime

from typing import Optional, Union

from harvardplate.features.recipes.domain.models import RecipeGenerationRequest


class GenerateRecipePayload(RecipeGenerationRequest):
    """Body of POST /api/recipes/generate: the generation request plus the caller's id."""

    user_id: Optional[Union[int, str]] = None

    def to_request(self) -> RecipeGenerationRequest:
        return RecipeGenerationRequest.model_validate(self.model_dump(exclude={"user_id"}))

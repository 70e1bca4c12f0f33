from __future__ import annotations

from typing import List

from harvardplate.features.recipes.domain.models import (
    NutritionalInfo,
    RecipeDraft,
    RecipeGenerationRequest,
    RecipeIngredient,
)

FALLBACK_EXTRA_INGREDIENTS = (
    RecipeIngredient(name="Olive oil", quantity="2 tbsp", category="fat"),
    RecipeIngredient(name="Lemon juice", quantity="1 tbsp", category="vegetable"),
)

FALLBACK_STEPS = (
    "Wash all vegetables and herbs thoroughly and pat them dry.",
    "Cut the ingredients into bite-sized pieces of similar size.",
    "Cook any grains or proteins that need it until done, then let them cool slightly.",
    "Whisk the olive oil with the lemon juice, season with salt and pepper.",
    "Combine all ingredients in a large bowl and pour the dressing over them.",
    "Toss gently, let rest for 5 minutes and serve.",
)

FALLBACK_NUTRITION = NutritionalInfo(calories=250, proteins=15, carbs=30, fats=10, fiber=12)

FALLBACK_PLATE_ANALYSIS = (
    "Fill half of the plate with the vegetables, a quarter with whole grains and a quarter with protein. "
    "Olive oil provides a moderate amount of healthy fat."
)

FALLBACK_TIPS = (
    "Add a handful of leafy greens to raise the vegetable share of the plate.",
    "Choose whole grains such as brown rice, quinoa or bulgur.",
    "Drink water instead of sugary drinks with your meal.",
)


def build_fallback_recipe(request: RecipeGenerationRequest) -> RecipeDraft:
    """
    Build a salad from the requested ingredients without calling the model.

    Pure function of `request`: the same request always yields an equal draft.
    """
    names = ", ".join(i.name for i in request.ingredients)
    ingredients: List[RecipeIngredient] = [
        RecipeIngredient(name=i.name, quantity="to taste", category=i.category) for i in request.ingredients
    ]
    ingredients.extend(FALLBACK_EXTRA_INGREDIENTS)

    return RecipeDraft(
        title=f'Salad "{names}"',
        description="A quick salad made from your ingredients, balanced by the Harvard Plate principles.",
        cooking_time=15,
        difficulty="easy",
        ingredients=ingredients,
        steps=list(FALLBACK_STEPS),
        nutritional_info=FALLBACK_NUTRITION,
        plate_analysis=FALLBACK_PLATE_ANALYSIS,
        tips=list(FALLBACK_TIPS),
    )

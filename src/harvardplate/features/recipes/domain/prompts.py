# src/harvardplate/features/recipes/domain/prompts.py
from __future__ import annotations

from typing import List, Literal

from harvardplate.features.recipes.domain.models import RecipeGenerationRequest

ResponseFormat = Literal["text", "json"]

HARVARD_PLATE_RULES = """
You are a professional nutritionist. Every recipe you write follows the Harvard Healthy Eating Plate:
- 50% of the plate is vegetables and fruit;
- 25% of the plate is whole grains;
- 25% of the plate is healthy protein;
- healthy fats (olive oil, nuts, seeds) are used in moderation.
Ingredient categories are ONLY: vegetable, grain, protein, fat.
"""

TEXT_SYSTEM_PROMPT = HARVARD_PLATE_RULES + """
FORMAT REQUIREMENTS:
Reply in plain text (no Markdown) using EXACTLY these labeled sections, in this order,
with one blank line between sections:

TITLE: <recipe name>
DESCRIPTION: <one or two sentences>
COOKING TIME: <minutes as a number>
DIFFICULTY: <easy|medium|hard>

INGREDIENTS:
• <name> - <quantity> - <category>

STEPS:
1. <step>
2. <step>

NUTRITION:
Calories: <number>
Proteins: <number>
Carbs: <number>
Fats: <number>
Fiber: <number>

PLATE ANALYSIS:
<how the dish maps onto the plate proportions>

TIPS:
• <tip>
"""

JSON_SYSTEM_PROMPT = HARVARD_PLATE_RULES + """
FORMAT REQUIREMENTS:
1) Return ONLY one JSON object, no Markdown and no text around it.
2) JSON schema:

{
  "title": "...",
  "description": "...",
  "cookingTime": 30,
  "difficulty": "easy|medium|hard",
  "ingredients": [{"name": "...", "quantity": "...", "category": "vegetable|grain|protein|fat"}],
  "steps": ["...", "..."],
  "nutritionalInfo": {"calories": 0, "proteins": 0, "carbs": 0, "fats": 0, "fiber": 0},
  "plateAnalysis": "...",
  "tips": ["..."]
}

3) title, ingredients and steps are required and must not be empty.
4) All nutritionalInfo values are non-negative numbers.
"""

_TEXT_REMINDER = "Answer using the labeled sections from the instructions (TITLE, DESCRIPTION, ... TIPS)."
_JSON_REMINDER = "Answer with a single JSON object that matches the schema from the instructions."


def system_prompt_for(response_format: ResponseFormat) -> str:
    return JSON_SYSTEM_PROMPT if response_format == "json" else TEXT_SYSTEM_PROMPT


def build_recipe_prompt(request: RecipeGenerationRequest, response_format: ResponseFormat = "json") -> str:
    """
    Render a generation request into the user message sent to the model.

    The output depends only on the request and the format, so identical
    requests always produce identical prompts.
    """
    ingredient_lines = [f"- {i.name} ({i.category})" for i in request.ingredients]
    preferences = ", ".join(request.dietary_preferences) if request.dietary_preferences else "none"

    parts: List[str] = [
        "Create one recipe that uses ALL of the following ingredients.",
        "Ingredients:",
        *ingredient_lines,
        f"Dietary preferences: {preferences}",
    ]
    if request.cooking_time:
        parts.append(f"Cooking time: at most {request.cooking_time} minutes")
    if request.user_prompt:
        parts.append(f"User wishes: {request.user_prompt}")
    parts.append(_JSON_REMINDER if response_format == "json" else _TEXT_REMINDER)
    return "\n".join(parts)


def build_messages(request: RecipeGenerationRequest, response_format: ResponseFormat = "json") -> List[dict]:
    return [
        {"role": "system", "content": system_prompt_for(response_format)},
        {"role": "user", "content": build_recipe_prompt(request, response_format)},
    ]

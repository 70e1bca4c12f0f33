"""
Turn raw model replies into `RecipeDraft` records.

Two reply contracts are supported:

* labeled text sections (`parse_text_response`): total, never raises; anything
  it cannot find falls back to a per-field default;
* strict JSON (`parse_json_response`): raises `ParseError` when no object can be
  decoded or the required fields are missing.
"""
from __future__ import annotations

import json
import re
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from harvardplate.features.recipes.domain.models import (
    IngredientCategory,
    NutritionalInfo,
    RecipeDraft,
    RecipeGenerationRequest,
    RecipeIngredient,
)

DEFAULT_DESCRIPTION = "A balanced dish following the Harvard Plate principles."
DEFAULT_COOKING_TIME = 30
DEFAULT_DIFFICULTY = "medium"
NUTRITION_WINDOW = 5

HEADERS = (
    "TITLE",
    "DESCRIPTION",
    "COOKING TIME",
    "DIFFICULTY",
    "INGREDIENTS",
    "STEPS",
    "NUTRITION",
    "PLATE ANALYSIS",
    "TIPS",
)

_RE_HEADER = re.compile(
    r"^[#*\s]*(" + "|".join(re.escape(h) for h in HEADERS) + r")[*\s]*:[*\s]*(.*)$",
    re.IGNORECASE,
)
_RE_INT = re.compile(r"\d+")
_RE_BULLET = re.compile(r"^[•\-*–]\s*")
_RE_STEP_NUMBER = re.compile(r"^\d+\s*[.)]\s*")
_RE_INGREDIENT = re.compile(
    r"^[•\-*–]\s*(?P<name>.+?)\s+[-–]\s+(?P<quantity>.+?)\s+[-–]\s+(?P<category>[A-Za-z]+)\.?$"
)
_NUTRITION_LABELS: Dict[str, re.Pattern] = {
    "calories": re.compile(r"^\W*calories?\b", re.IGNORECASE),
    "proteins": re.compile(r"^\W*proteins?\b", re.IGNORECASE),
    "carbs": re.compile(r"^\W*carb(?:s|ohydrates?)?\b", re.IGNORECASE),
    "fats": re.compile(r"^\W*fats?\b", re.IGNORECASE),
    "fiber": re.compile(r"^\W*fib(?:er|re)\b", re.IGNORECASE),
}
_CATEGORIES = {c.value for c in IngredientCategory}


class ParseError(ValueError):
    """The model reply does not contain a usable recipe object."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw_excerpt = (raw or "")[:200]


# ---------------------------------------------------------------------------
# Labeled text sections
# ---------------------------------------------------------------------------

def _match_header(line: str) -> Optional[Tuple[str, str]]:
    m = _RE_HEADER.match(line)
    if not m:
        return None
    return m.group(1).upper(), m.group(2).strip()


def _first_scalar(lines: List[str], header: str) -> Optional[str]:
    for line in lines:
        found = _match_header(line)
        if found and found[0] == header:
            return found[1] or None
    return None


def _find_header(lines: List[str], header: str) -> Optional[int]:
    for idx, line in enumerate(lines):
        found = _match_header(line)
        if found and found[0] == header:
            return idx
    return None


def _section_lines(lines: List[str], header: str) -> List[str]:
    """Lines after `header` up to the first blank line or the next header."""
    start = _find_header(lines, header)
    if start is None:
        return []
    out: List[str] = []
    for line in lines[start + 1:]:
        if not line or _match_header(line):
            break
        out.append(line)
    return out


def parse_ingredient_line(line: str) -> Optional[RecipeIngredient]:
    """
    Parse `• name - quantity - category`; returns None when the line does not fit.
    """
    m = _RE_INGREDIENT.match(line.strip())
    if not m:
        return None
    category = m.group("category").lower()
    if category not in _CATEGORIES:
        return None
    return RecipeIngredient(name=m.group("name").strip(), quantity=m.group("quantity").strip(), category=category)


def _parse_nutrition(lines: List[str]) -> NutritionalInfo:
    values: Dict[str, int] = {}
    start = _find_header(lines, "NUTRITION")
    if start is not None:
        for line in lines[start + 1:start + 1 + NUTRITION_WINDOW]:
            for key, pattern in _NUTRITION_LABELS.items():
                if key in values or not pattern.match(line):
                    continue
                num = _RE_INT.search(line)
                if num:
                    values[key] = int(num.group(0))
                break
    return NutritionalInfo(**values)


def _parse_cooking_time(value: Optional[str]) -> int:
    if value:
        m = _RE_INT.search(value)
        if m:
            return int(m.group(0))
    return DEFAULT_COOKING_TIME


def _parse_difficulty(value: Optional[str]) -> str:
    if value:
        word = value.strip().lower().split()[0].strip(".,;!")
        if word in ("easy", "medium", "hard"):
            return word
    return DEFAULT_DIFFICULTY


def _plate_analysis(lines: List[str]) -> str:
    start = _find_header(lines, "PLATE ANALYSIS")
    if start is None:
        return ""
    inline = _match_header(lines[start])[1]
    body = _section_lines(lines, "PLATE ANALYSIS")
    return "\n".join(([inline] if inline else []) + body)


def parse_text_response(text: Optional[str], request: RecipeGenerationRequest) -> RecipeDraft:
    """
    Extract a recipe from a labeled-section reply.

    Every field is looked up independently: scalars take the first matching
    label line, list sections run until a blank line or the next header, and
    entries that do not fit their pattern are dropped. Never raises.
    """
    lines = [ln.strip() for ln in (text or "").splitlines()]

    title = _first_scalar(lines, "TITLE") or f"Recipe with {request.ingredients[0].name}"
    description = _first_scalar(lines, "DESCRIPTION") or DEFAULT_DESCRIPTION

    ingredients: List[RecipeIngredient] = []
    for line in _section_lines(lines, "INGREDIENTS"):
        parsed = parse_ingredient_line(line)
        if parsed is not None:
            ingredients.append(parsed)

    steps = [s for s in (_RE_STEP_NUMBER.sub("", ln).strip() for ln in _section_lines(lines, "STEPS")) if s]
    tips = [
        _RE_BULLET.sub("", ln).strip()
        for ln in _section_lines(lines, "TIPS")
        if _RE_BULLET.match(ln) and _RE_BULLET.sub("", ln).strip()
    ]

    return RecipeDraft(
        title=title,
        description=description,
        cooking_time=_parse_cooking_time(_first_scalar(lines, "COOKING TIME")),
        difficulty=_parse_difficulty(_first_scalar(lines, "DIFFICULTY")),
        ingredients=ingredients,
        steps=steps,
        nutritional_info=_parse_nutrition(lines),
        plate_analysis=_plate_analysis(lines),
        tips=tips,
    )


# ---------------------------------------------------------------------------
# Strict JSON
# ---------------------------------------------------------------------------

REQUIRED_JSON_FIELDS = ("title", "ingredients", "steps")


def extract_json_object(text: Optional[str]) -> str:
    """Slice from the first `{` to the last `}` inclusive."""
    content = text or ""
    first = content.find("{")
    last = content.rfind("}")
    if first == -1 or last == -1 or last <= first:
        raise ParseError("No JSON object found in model reply", content)
    return content[first:last + 1]


def _first_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if value >= 0 else None
    if isinstance(value, str):
        m = _RE_INT.search(value)
        if m:
            return int(m.group(0))
    return None


def _normalize_json_ingredient(item: object) -> Optional[dict]:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    category = item.get("category")
    if not isinstance(name, str) or not name.strip() or not isinstance(category, str):
        return None
    category = category.strip().lower()
    if category not in _CATEGORIES:
        return None
    quantity = item.get("quantity")
    return {
        "name": name,
        "quantity": "" if quantity is None else str(quantity),
        "category": category,
    }


def _pop_either(data: dict, camel: str, snake: str) -> object:
    value = data.pop(camel, None)
    snake_value = data.pop(snake, None)
    return value if value is not None else snake_value


def _normalize_json_recipe(data: dict) -> dict:
    """
    Coerce the loosely typed parts of a JSON reply into the recipe schema.

    Unknown difficulty becomes "medium", quantities become strings, ingredients with
    an unknown category are dropped, and unusable optional values fall back to their
    defaults. Text values are otherwise kept as written.
    """
    out = dict(data)

    title = out.get("title")
    out["title"] = title if isinstance(title, str) and title.strip() else None

    ingredients = out.get("ingredients")
    if isinstance(ingredients, list):
        out["ingredients"] = [i for i in map(_normalize_json_ingredient, ingredients) if i is not None]
    else:
        out["ingredients"] = []

    steps = out.get("steps")
    if isinstance(steps, list):
        out["steps"] = [s for s in steps if isinstance(s, str) and s.strip()]
    else:
        out["steps"] = []

    difficulty = out.get("difficulty")
    if difficulty is not None:
        word = difficulty.strip().lower() if isinstance(difficulty, str) else ""
        out["difficulty"] = word if word in ("easy", "medium", "hard") else DEFAULT_DIFFICULTY

    cooking_time = _first_int(_pop_either(out, "cookingTime", "cooking_time"))
    if cooking_time is not None:
        out["cookingTime"] = cooking_time

    nutrition = _pop_either(out, "nutritionalInfo", "nutritional_info")
    if isinstance(nutrition, dict):
        values = {}
        for key in _NUTRITION_LABELS:
            raw = nutrition.get(key)
            if isinstance(raw, float) and raw >= 0:
                values[key] = raw
            else:
                num = _first_int(raw)
                if num is not None:
                    values[key] = num
        out["nutritionalInfo"] = values

    plate_analysis = _pop_either(out, "plateAnalysis", "plate_analysis")
    if isinstance(plate_analysis, str):
        out["plateAnalysis"] = plate_analysis

    if not isinstance(out.get("description", ""), str):
        del out["description"]

    tips = out.get("tips")
    if tips is not None:
        out["tips"] = [t for t in tips if isinstance(t, str) and t.strip()] if isinstance(tips, list) else []

    return out


def parse_json_response(text: Optional[str]) -> RecipeDraft:
    """
    Decode a strict-JSON reply. Fails with ParseError instead of defaulting.
    """
    raw = extract_json_object(text)
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in model reply: {e.msg}", raw) from e

    if not isinstance(data, dict):
        raise ParseError("Model reply JSON is not an object", raw)

    data = _normalize_json_recipe(data)
    missing = [f for f in REQUIRED_JSON_FIELDS if not data.get(f)]
    if missing:
        raise ParseError(f"Model reply is missing required fields: {', '.join(missing)}", raw)

    try:
        return RecipeDraft.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Model reply does not match the recipe schema: {e.error_count()} error(s)", raw) from e

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from harvardplate.features.plates.infra.plates_repo import PlatesRepository
from harvardplate.features.recipes.app.use_cases import RecipeGenerator
from harvardplate.features.recipes.infra.history_repo import RecipeHistoryRepository
from harvardplate.shared.api.auth import AuthenticatedUser, ensure_owner, get_current_user, require_user_id
from harvardplate.shared.api.deps import (
    get_history_repo,
    get_plates_repo,
    get_recipe_generator,
    get_settings,
)
from harvardplate.shared.api.errors import AppError
from harvardplate.shared.config.settings import Settings
from .schemas import GenerateRecipePayload

log = logging.getLogger(__name__)

router = APIRouter(tags=["recipes"])


@router.post("/recipes/generate")
async def generate_recipe(
    payload: GenerateRecipePayload,
    save_plate: bool = Query(default=False, alias="savePlate"),
    user: AuthenticatedUser = Depends(get_current_user),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    history: RecipeHistoryRepository = Depends(get_history_repo),
    plates: PlatesRepository = Depends(get_plates_repo),
):
    if payload.user_id is not None:
        ensure_owner(user, require_user_id(payload.user_id))
    request = payload.to_request()
    log.info(f"Generating recipe for user {user.telegram_id} from {len(request.ingredients)} ingredients")

    recipe = await generator.generate_recipe(request)
    await run_in_threadpool(history.log_request, user.telegram_id, request, recipe, recipe.usage)

    saved_plate_id: Optional[str] = None
    if save_plate:
        plate = await run_in_threadpool(plates.save, user.telegram_id, request.ingredients, recipe.title, recipe)
        saved_plate_id = plate.id

    return {
        "success": True,
        "data": recipe,
        "meta": {
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "model": generator.model,
            "tokenUsage": recipe.usage,
            "savedPlateId": saved_plate_id,
        },
    }


@router.get("/recipes/history/{user_id}")
def recipe_history(
    user_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    page: int = Query(default=1, ge=1),
    user: AuthenticatedUser = Depends(get_current_user),
    history: RecipeHistoryRepository = Depends(get_history_repo),
    cfg: Settings = Depends(get_settings),
):
    telegram_id = require_user_id(user_id)
    ensure_owner(user, telegram_id)

    limit = limit or cfg.HISTORY_DEFAULT_LIMIT
    items = history.list_for_user(telegram_id, limit=limit, skip=(page - 1) * limit)
    total = history.count_for_user(telegram_id)
    return {
        "success": True,
        "data": items,
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


@router.post("/recipes/regenerate/{history_id}")
async def regenerate_recipe(
    history_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    generator: RecipeGenerator = Depends(get_recipe_generator),
    history: RecipeHistoryRepository = Depends(get_history_repo),
):
    record = await run_in_threadpool(history.get, history_id)
    if record is None:
        raise AppError("History entry not found", 404, "NOT_FOUND")
    if record.telegram_id != user.telegram_id:
        raise AppError("Access to this history entry is denied", 403, "FORBIDDEN")

    recipe = await generator.generate_recipe(record.request_data)
    return {"success": True, "data": recipe, "isRegenerated": True, "originalRequestId": history_id}

from __future__ import annotations

from fastapi import APIRouter, Depends

from harvardplate.features.plates.infra.plates_repo import PlatesRepository
from harvardplate.shared.api.auth import AuthenticatedUser, ensure_owner, get_current_user, require_user_id
from harvardplate.shared.api.deps import get_plates_repo
from harvardplate.shared.api.errors import AppError
from .schemas import SavePlatePayload

router = APIRouter(tags=["plates"])


@router.post("/plates", status_code=201)
def save_plate(
    payload: SavePlatePayload,
    user: AuthenticatedUser = Depends(get_current_user),
    plates: PlatesRepository = Depends(get_plates_repo),
):
    if payload.user_id is not None:
        ensure_owner(user, payload.user_id)
    plate = plates.save(user.telegram_id, payload.ingredients, payload.name, payload.recipe_data)
    return {"success": True, "data": plate}


@router.get("/plates/{user_id}")
def list_plates(
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    plates: PlatesRepository = Depends(get_plates_repo),
):
    telegram_id = require_user_id(user_id)
    ensure_owner(user, telegram_id)
    return {"success": True, "data": plates.list_for_user(telegram_id)}


@router.delete("/plates/{user_id}/{plate_id}")
def delete_plate(
    user_id: str,
    plate_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    plates: PlatesRepository = Depends(get_plates_repo),
):
    telegram_id = require_user_id(user_id)
    ensure_owner(user, telegram_id)
    if not plates.delete(telegram_id, plate_id):
        raise AppError("Plate not found", 404, "NOT_FOUND")
    return {"success": True}

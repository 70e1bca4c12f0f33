from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from harvardplate.features.users.infra.users_repo import UsersRepository
from harvardplate.shared.api.auth import AuthenticatedUser, ensure_owner, get_current_user, require_user_id
from harvardplate.shared.api.deps import get_users_repo
from harvardplate.shared.api.errors import AppError
from .schemas import AddIngredientPayload, CreateUserPayload

log = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


def _owned_user_id(user_id: str, user: AuthenticatedUser) -> int:
    telegram_id = require_user_id(user_id)
    ensure_owner(user, telegram_id)
    return telegram_id


@router.post("/users")
def create_or_get_user(payload: CreateUserPayload, users: UsersRepository = Depends(get_users_repo)):
    record, is_new = users.create_or_get(payload.telegram_id, payload.username)
    return {"success": True, "data": record, "isNew": is_new}


@router.get("/users/{user_id}")
def get_user(
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UsersRepository = Depends(get_users_repo),
):
    record = users.get(_owned_user_id(user_id, user))
    if record is None:
        raise AppError("User not found", 404, "NOT_FOUND")
    return {"success": True, "data": record}


@router.get("/users/{user_id}/ingredients")
def list_user_ingredients(
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UsersRepository = Depends(get_users_repo),
):
    return {"success": True, "data": users.list_ingredients(_owned_user_id(user_id, user))}


@router.post("/users/{user_id}/ingredients", status_code=201)
def add_user_ingredient(
    user_id: str,
    payload: AddIngredientPayload,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UsersRepository = Depends(get_users_repo),
):
    telegram_id = _owned_user_id(user_id, user)
    ingredient = users.add_ingredient(telegram_id, payload.name, payload.category)
    log.info(f"User {telegram_id} added ingredient '{ingredient.name}'")
    return {"success": True, "data": ingredient}


@router.delete("/users/{user_id}/ingredients/{ingredient_id}")
def delete_user_ingredient(
    user_id: str,
    ingredient_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UsersRepository = Depends(get_users_repo),
):
    if not users.delete_ingredient(_owned_user_id(user_id, user), ingredient_id):
        raise AppError("Ingredient not found", 404, "NOT_FOUND")
    return {"success": True}


@router.get("/users/{user_id}/stats")
def user_stats(
    user_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    users: UsersRepository = Depends(get_users_repo),
):
    return {"success": True, "data": users.stats(_owned_user_id(user_id, user))}

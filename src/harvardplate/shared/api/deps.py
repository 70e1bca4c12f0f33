"""
FastAPI dependencies resolving the per-process collaborators stored on `app.state`
by `create_app`. Tests swap them through `app.dependency_overrides`.
"""
from __future__ import annotations

from fastapi import Depends, Request
from pymongo.database import Database

from harvardplate.shared.config.settings import Settings
from harvardplate.shared.llm.openai_client import LLMClient


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_llm(request: Request) -> LLMClient:
    return request.app.state.llm


def get_recipe_generator(request: Request):
    return request.app.state.recipe_generator


def get_history_repo(db: Database = Depends(get_db)):
    from harvardplate.features.recipes.infra.history_repo import RecipeHistoryRepository

    return RecipeHistoryRepository(db)


def get_users_repo(db: Database = Depends(get_db)):
    from harvardplate.features.users.infra.users_repo import UsersRepository

    return UsersRepository(db)


def get_plates_repo(db: Database = Depends(get_db)):
    from harvardplate.features.plates.infra.plates_repo import PlatesRepository

    return PlatesRepository(db)

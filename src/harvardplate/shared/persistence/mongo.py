from __future__ import annotations

import logging
from datetime import datetime, timezone

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.errors import OperationFailure

from harvardplate.shared.config.settings import Settings

log = logging.getLogger(__name__)

USERS = "users"
USER_INGREDIENTS = "user_ingredients"
SAVED_PLATES = "saved_plates"
RECIPE_HISTORY = "recipe_history"


def create_client(cfg: Settings) -> MongoClient:
    """Create the process-wide Mongo client; connection happens lazily on first use."""
    return MongoClient(cfg.MONGODB_URI, tz_aware=True)


def get_database(client: MongoClient, cfg: Settings) -> Database:
    return client[cfg.MONGODB_DB]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_indexes(db: Database) -> None:
    """Create indexes for collections if they do not exist."""
    users = db.get_collection(USERS)
    ingredients = db.get_collection(USER_INGREDIENTS)
    plates = db.get_collection(SAVED_PLATES)
    history = db.get_collection(RECIPE_HISTORY)
    try:
        for coll in (ingredients, plates, history):
            if "id_unique" not in coll.index_information():
                coll.create_index([("id", ASCENDING)], name="id_unique", unique=True)
        if "telegram_id_unique" not in users.index_information():
            users.create_index([("telegram_id", ASCENDING)], name="telegram_id_unique", unique=True)
        if "user_ingredient_unique" not in ingredients.index_information():
            ingredients.create_index(
                [("telegram_id", ASCENDING), ("name", ASCENDING)],
                name="user_ingredient_unique",
                unique=True,
            )
        if "plates_user" not in plates.index_information():
            plates.create_index([("telegram_id", ASCENDING), ("created_at", DESCENDING)], name="plates_user")
        if "history_user" not in history.index_information():
            history.create_index([("telegram_id", ASCENDING), ("created_at", DESCENDING)], name="history_user")
    except OperationFailure:
        log.warning("ensure_indexes failed", exc_info=True)

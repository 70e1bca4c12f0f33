from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from harvardplate.features.users.domain.models import UserIngredientRecord, UserRecord, UserStats
from harvardplate.shared.persistence.mongo import (
    RECIPE_HISTORY,
    SAVED_PLATES,
    USER_INGREDIENTS,
    USERS,
    utcnow,
)
from harvardplate.shared.utils.id_utils import new_id

logger = logging.getLogger(__name__)

_PROJECTION = {"_id": 0}


class UsersRepository:
    """Users and the ingredients they keep in their pantry."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.users = db.get_collection(USERS)
        self.ingredients = db.get_collection(USER_INGREDIENTS)

    def get(self, telegram_id: int) -> Optional[UserRecord]:
        doc = self.users.find_one({"telegram_id": telegram_id}, _PROJECTION)
        return UserRecord.model_validate(doc) if doc else None

    def create_or_get(self, telegram_id: int, username: Optional[str] = None) -> Tuple[UserRecord, bool]:
        """
        Return the user with `telegram_id`, creating it when missing.
        An existing user's username is refreshed when a different one is given.
        """
        existing = self.get(telegram_id)
        if existing is not None:
            if username and existing.username != username:
                doc = self.users.find_one_and_update(
                    {"telegram_id": telegram_id},
                    {"$set": {"username": username, "updated_at": utcnow()}},
                    projection=_PROJECTION,
                    return_document=ReturnDocument.AFTER,
                )
                if doc:
                    existing = UserRecord.model_validate(doc)
            return existing, False

        now = utcnow()
        user = UserRecord(
            telegram_id=telegram_id,
            username=username or f"user_{telegram_id}",
            created_at=now,
            updated_at=now,
        )
        try:
            self.users.insert_one(user.model_dump())
        except DuplicateKeyError:
            # Created concurrently by another request.
            return self.get(telegram_id) or user, False
        logger.info(f"Created new user: {telegram_id}")
        return user, True

    def list_ingredients(self, telegram_id: int) -> List[UserIngredientRecord]:
        cursor = self.ingredients.find({"telegram_id": telegram_id}, _PROJECTION).sort("created_at", DESCENDING)
        return [UserIngredientRecord.model_validate(doc) for doc in cursor]

    def add_ingredient(self, telegram_id: int, name: str, category: str) -> UserIngredientRecord:
        """Add an ingredient; adding a name that already exists updates its category."""
        doc = self.ingredients.find_one_and_update(
            {"telegram_id": telegram_id, "name": name},
            {
                "$set": {"category": category},
                "$setOnInsert": {"id": new_id(), "telegram_id": telegram_id, "name": name, "created_at": utcnow()},
            },
            projection=_PROJECTION,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return UserIngredientRecord.model_validate(doc)

    def delete_ingredient(self, telegram_id: int, ingredient_id: str) -> bool:
        res = self.ingredients.delete_one({"id": ingredient_id, "telegram_id": telegram_id})
        return res.deleted_count > 0

    def stats(self, telegram_id: int) -> UserStats:
        return UserStats(
            ingredients=self.ingredients.count_documents({"telegram_id": telegram_id}),
            plates=self.db.get_collection(SAVED_PLATES).count_documents({"telegram_id": telegram_id}),
            recipe_requests=self.db.get_collection(RECIPE_HISTORY).count_documents({"telegram_id": telegram_id}),
        )

from __future__ import annotations

from typing import List, Optional, Sequence

from pymongo import DESCENDING
from pymongo.database import Database

from harvardplate.features.plates.domain.models import PlateRecord
from harvardplate.features.recipes.domain.models import Ingredient, RecipeResponse
from harvardplate.shared.persistence.mongo import SAVED_PLATES, utcnow
from harvardplate.shared.utils.id_utils import new_id

_PROJECTION = {"_id": 0}


class PlatesRepository:
    def __init__(self, db: Database) -> None:
        self.coll = db.get_collection(SAVED_PLATES)

    def save(
        self,
        telegram_id: int,
        ingredients: Sequence[Ingredient],
        name: Optional[str] = None,
        recipe_data: Optional[RecipeResponse] = None,
    ) -> PlateRecord:
        plate = PlateRecord(
            id=new_id(),
            telegram_id=telegram_id,
            name=name or None,
            ingredients=list(ingredients),
            recipe_data=recipe_data,
            created_at=utcnow(),
        )
        self.coll.insert_one(plate.model_dump())
        return plate

    def list_for_user(self, telegram_id: int) -> List[PlateRecord]:
        cursor = self.coll.find({"telegram_id": telegram_id}, _PROJECTION).sort("created_at", DESCENDING)
        return [PlateRecord.model_validate(doc) for doc in cursor]

    def delete(self, telegram_id: int, plate_id: str) -> bool:
        res = self.coll.delete_one({"id": plate_id, "telegram_id": telegram_id})
        return res.deleted_count > 0

from __future__ import annotations

import logging
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from harvardplate.features.recipes.domain.models import (
    RecipeGenerationRequest,
    RecipeHistoryRecord,
    RecipeResponse,
)
from harvardplate.shared.llm.openai_client import TokenUsage
from harvardplate.shared.persistence.mongo import RECIPE_HISTORY, utcnow
from harvardplate.shared.utils.id_utils import new_id

logger = logging.getLogger(__name__)

_PROJECTION = {"_id": 0}


class RecipeHistoryRepository:
    def __init__(self, db: Database) -> None:
        self.coll = db.get_collection(RECIPE_HISTORY)

    def log_request(
        self,
        telegram_id: int,
        request: RecipeGenerationRequest,
        response: Optional[RecipeResponse] = None,
        usage: Optional[TokenUsage] = None,
    ) -> Optional[RecipeHistoryRecord]:
        """
        Store one request/response pair. Storage failures are logged, not raised:
        a generated recipe is still returned to the caller.
        """
        record = RecipeHistoryRecord(
            id=new_id(),
            telegram_id=telegram_id,
            request_data=request,
            response_data=response,
            usage=usage,
            created_at=utcnow(),
        )
        try:
            self.coll.insert_one(record.model_dump())
        except PyMongoError as e:
            logger.error(f"Error logging recipe request for user {telegram_id}: {e}")
            return None
        return record

    def list_for_user(self, telegram_id: int, *, limit: int = 20, skip: int = 0) -> List[RecipeHistoryRecord]:
        cursor = (
            self.coll.find({"telegram_id": telegram_id}, _PROJECTION)
            .sort("created_at", DESCENDING)
            .skip(max(0, skip))
            .limit(max(1, limit))
        )
        return [RecipeHistoryRecord.model_validate(doc) for doc in cursor]

    def count_for_user(self, telegram_id: int) -> int:
        return self.coll.count_documents({"telegram_id": telegram_id})

    def get(self, history_id: str) -> Optional[RecipeHistoryRecord]:
        doc = self.coll.find_one({"id": history_id}, _PROJECTION)
        return RecipeHistoryRecord.model_validate(doc) if doc else None

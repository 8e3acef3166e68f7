from __future__ import annotations

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.token_price_entity import TokenPriceEntity, TokenPriceLatestEntity
from core.repositories.token_price_repository import TokenPriceRepository


class TokenPriceRepositoryMongoDB(TokenPriceRepository):
    """
    MongoDB repository for token prices.

    Two collections:
      - dex_token_prices:        history, one insert per sync cycle (never upserted)
      - dex_token_prices_latest: one document per token_address (always upserted)
    """

    HISTORY_COLLECTION = "dex_token_prices"
    LATEST_COLLECTION = "dex_token_prices_latest"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        history = self._db[self.HISTORY_COLLECTION]
        await history.create_index([("token_address", 1), ("timestamp", 1)])

        latest = self._db[self.LATEST_COLLECTION]
        await latest.create_index([("token_address", 1)], unique=True)
        await latest.create_index([("rank", 1)])

    async def append_history(self, price: TokenPriceEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = price.to_mongo()
        payload.pop("_id", None)
        payload["created_at"] = now_ms
        payload["created_at_iso"] = now_iso

        # do NOT upsert: every cycle produces its own row
        await self._db[self.HISTORY_COLLECTION].insert_one(payload)

    async def upsert_latest(self, latest: TokenPriceLatestEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = latest.to_mongo_set()
        payload["updated_at"] = now_ms
        payload["updated_at_iso"] = now_iso

        await self._db[self.LATEST_COLLECTION].update_one(
            {"token_address": latest.token_address},
            {
                "$set": payload,
                "$setOnInsert": {"created_at": now_ms, "created_at_iso": now_iso},
            },
            upsert=True,
        )

    async def get_latest(self, token_address: str) -> Optional[TokenPriceLatestEntity]:
        doc = await self._db[self.LATEST_COLLECTION].find_one({"token_address": str(token_address).strip().lower()})
        return TokenPriceLatestEntity.from_mongo(doc) if doc else None

    async def list_history(self, token_address: str, *, skip: int, limit: int) -> List[TokenPriceEntity]:
        cursor = (
            self._db[self.HISTORY_COLLECTION]
            .find({"token_address": str(token_address).strip().lower()})
            .sort("timestamp", 1)
            .skip(int(skip))
            .limit(int(limit))
        )
        docs = await cursor.to_list(length=int(limit))
        return [TokenPriceEntity.from_mongo(d) for d in docs if d]

    async def daily_summary(self, token_address: str) -> List[Dict[str, Any]]:
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"token_address": str(token_address).strip().lower()}},
            {"$sort": {"timestamp": 1}},
            {
                "$group": {
                    "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$timestamp"}},
                    "avg_price": {"$avg": "$price_usd"},
                    "max_price": {"$max": "$price_usd"},
                    "min_price": {"$min": "$price_usd"},
                    "first_price": {"$first": "$price_usd"},
                    "last_price": {"$last": "$price_usd"},
                    "logo_uri": {"$first": "$logo_uri"},
                    "symbol": {"$first": "$symbol"},
                    "name": {"$first": "$name"},
                }
            },
            {"$project": {"_id": 0, "date": "$_id", "avg_price": 1, "max_price": 1, "min_price": 1,
                          "first_price": 1, "last_price": 1, "logo_uri": 1, "symbol": 1, "name": 1}},
            {"$sort": {"date": 1}},
        ]
        cursor = self._db[self.HISTORY_COLLECTION].aggregate(pipeline)
        return await cursor.to_list(length=None)

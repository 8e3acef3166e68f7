from __future__ import annotations

from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.listed_token_entity import ListedTokenEntity
from core.repositories.listed_token_repository import ListedTokenRepository


class ListedTokenRepositoryMongoDB(ListedTokenRepository):
    """
    MongoDB repository for launchpad tokens (latest state, one doc per token_address).

    The collection predates this service and may hold documents without a
    string token_address, hence the partial unique index.
    """

    COLLECTION = "lfg_tokens"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        col = self._db[self.COLLECTION]
        await col.create_index(
            [("token_address", 1)],
            unique=True,
            partialFilterExpression={"token_address": {"$type": "string"}},
        )
        await col.create_index([("ticker", 1)])
        await col.create_index([("name", 1)])
        await col.create_index([("market_cap", -1)])

    async def upsert(self, token: ListedTokenEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = token.to_mongo_set()
        payload["updated_at"] = now_ms
        payload["updated_at_iso"] = now_iso

        await self._db[self.COLLECTION].update_one(
            {"token_address": token.token_address},
            {
                "$set": payload,
                "$setOnInsert": {"created_at": now_ms, "created_at_iso": now_iso},
            },
            upsert=True,
        )

    async def get_by_address(self, token_address: str) -> Optional[ListedTokenEntity]:
        doc = await self._db[self.COLLECTION].find_one({"token_address": str(token_address).strip().lower()})
        return ListedTokenEntity.from_mongo(doc) if doc else None

    async def list_by_market_cap(self, *, skip: int, limit: int) -> List[ListedTokenEntity]:
        cursor = (
            self._db[self.COLLECTION]
            .find({"token_address": {"$type": "string"}})
            .sort("market_cap", -1)
            .skip(int(skip))
            .limit(int(limit))
        )
        docs = await cursor.to_list(length=int(limit))
        return [ListedTokenEntity.from_mongo(d) for d in docs if d]

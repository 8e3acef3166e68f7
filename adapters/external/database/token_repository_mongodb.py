from __future__ import annotations

from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.token_entity import TokenEntity
from core.repositories.token_repository import TokenRepository


class TokenRepositoryMongoDB(TokenRepository):
    """
    MongoDB repository for the tracked token master list.

    One document per lowercased address. Upserts overwrite the modelled fields
    ($set of the entity) and never touch fields written by other tools.
    """

    COLLECTION = "dex_tokens"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        col = self._db[self.COLLECTION]
        await col.create_index([("address", 1)], unique=True)
        await col.create_index([("rank", 1)])
        await col.create_index([("verified", 1)])

    async def upsert(self, token: TokenEntity) -> None:
        col = self._db[self.COLLECTION]
        now_ms, now_iso = write_stamps()

        payload = token.to_mongo_set()
        payload["address"] = token.address.lower()
        payload["updated_at"] = now_ms
        payload["updated_at_iso"] = now_iso

        await col.update_one(
            {"address": payload["address"]},
            {
                "$set": payload,
                "$setOnInsert": {"created_at": now_ms, "created_at_iso": now_iso},
            },
            upsert=True,
        )

    async def get_by_address(self, address: str) -> Optional[TokenEntity]:
        col = self._db[self.COLLECTION]
        doc = await col.find_one({"address": str(address).strip().lower()})
        return TokenEntity.from_mongo(doc) if doc else None

    async def list_all(self) -> List[TokenEntity]:
        col = self._db[self.COLLECTION]
        docs = await col.find({"address": {"$type": "string"}}).to_list(length=None)
        out = [TokenEntity.from_mongo(d) for d in docs]
        return [x for x in out if x is not None]

    async def list_ranked(self, *, skip: int, limit: int) -> List[TokenEntity]:
        col = self._db[self.COLLECTION]
        cursor = col.find({"address": {"$type": "string"}}).sort("rank", 1).skip(int(skip)).limit(int(limit))
        docs = await cursor.to_list(length=int(limit))
        return [TokenEntity.from_mongo(d) for d in docs if d]

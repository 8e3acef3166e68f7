from __future__ import annotations

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.pool_entity import PoolEntity
from core.repositories.pool_repository import PoolRepository


class PoolRepositoryMongoDB(PoolRepository):
    """
    MongoDB repository for pools.

    - dex_pools:        append-only history (time-ordered by remote_updated_at)
    - dex_pools_latest: one document per (dex, address)

    The latest uniqueness index is partial on address being a string, so
    legacy documents with other shapes already in the collection do not
    block index creation.
    """

    HISTORY_COLLECTION = "dex_pools"
    LATEST_COLLECTION = "dex_pools_latest"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        history = self._db[self.HISTORY_COLLECTION]
        await history.create_index([("dex", 1), ("address", 1), ("remote_updated_at", -1)])
        await history.create_index([("remote_updated_at", -1)])

        latest = self._db[self.LATEST_COLLECTION]
        await latest.create_index(
            [("dex", 1), ("address", 1)],
            unique=True,
            partialFilterExpression={"address": {"$type": "string"}},
        )
        for field in ("tvl", "volume_usd", "fees_usd", "apr", "remote_updated_at"):
            await latest.create_index([(field, -1)])

    async def append_history(self, pool: PoolEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = pool.to_mongo()
        payload.pop("_id", None)
        payload["created_at"] = now_ms
        payload["created_at_iso"] = now_iso
        await self._db[self.HISTORY_COLLECTION].insert_one(payload)

    async def upsert_latest(self, pool: PoolEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = pool.to_mongo_set()
        payload["updated_at"] = now_ms
        payload["updated_at_iso"] = now_iso

        await self._db[self.LATEST_COLLECTION].update_one(
            {"dex": pool.dex, "address": pool.address},
            {
                "$set": payload,
                "$setOnInsert": {"created_at": now_ms, "created_at_iso": now_iso},
            },
            upsert=True,
        )

    async def get_latest(self, address: str, *, dex: Optional[str] = None) -> Optional[PoolEntity]:
        query: Dict[str, Any] = {"address": str(address).strip().lower()}
        if dex:
            query["dex"] = dex
        doc = await self._db[self.LATEST_COLLECTION].find_one(query)
        return PoolEntity.from_mongo(doc) if doc else None

    async def list_latest(
        self,
        *,
        sort_field: str,
        descending: bool,
        skip: int,
        limit: int,
    ) -> List[PoolEntity]:
        cursor = (
            self._db[self.LATEST_COLLECTION]
            .find({"address": {"$type": "string"}})
            .sort(sort_field, -1 if descending else 1)
            .skip(int(skip))
            .limit(int(limit))
        )
        docs = await cursor.to_list(length=int(limit))
        return [PoolEntity.from_mongo(d) for d in docs if d]

    async def list_history(self, *, address: Optional[str], skip: int, limit: int) -> List[PoolEntity]:
        query: Dict[str, Any] = {}
        if address:
            query["address"] = str(address).strip().lower()
        cursor = (
            self._db[self.HISTORY_COLLECTION]
            .find(query)
            .sort("remote_updated_at", -1)
            .skip(int(skip))
            .limit(int(limit))
        )
        docs = await cursor.to_list(length=int(limit))
        return [PoolEntity.from_mongo(d) for d in docs if d]

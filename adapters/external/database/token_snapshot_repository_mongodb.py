from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.token_snapshot_entity import TokenSnapshotEntity
from core.repositories.token_snapshot_repository import TokenSnapshotRepository


class TokenSnapshotRepositoryMongoDB(TokenSnapshotRepository):
    """
    MongoDB implementation for bucketed token time series.

    Keyed by (token_address, snapped_at). The unique index enforces one row per
    bucket even when two sync runs race; upserts then overwrite in place.
    """

    COLLECTION = "lfg_token_snapshots"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        col = self._db[self.COLLECTION]
        await col.create_index([("token_address", 1), ("snapped_at", 1)], unique=True)
        await col.create_index([("snapped_at", -1)])

    async def upsert_snapshot(self, snapshot: TokenSnapshotEntity) -> None:
        now_ms, now_iso = write_stamps()

        key = {"token_address": snapshot.token_address, "snapped_at": snapshot.snapped_at}
        payload = snapshot.to_mongo_set()
        payload["updated_at"] = now_ms
        payload["updated_at_iso"] = now_iso

        await self._db[self.COLLECTION].update_one(
            key,
            {
                "$set": payload,
                "$setOnInsert": {"created_at": now_ms, "created_at_iso": now_iso},
            },
            upsert=True,
        )

    async def list_history(
        self,
        token_address: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = False,
        limit: int = 500,
    ) -> List[TokenSnapshotEntity]:
        query: Dict[str, Any] = {"token_address": str(token_address).strip().lower()}
        if start is not None or end is not None:
            window: Dict[str, Any] = {}
            if start is not None:
                window["$gte"] = start
            if end is not None:
                window["$lte"] = end
            query["snapped_at"] = window

        cursor = (
            self._db[self.COLLECTION]
            .find(query)
            .sort("snapped_at", -1 if descending else 1)
            .limit(int(limit))
        )
        docs = await cursor.to_list(length=int(limit))
        return [TokenSnapshotEntity.from_mongo(d) for d in docs if d]

from __future__ import annotations

from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.mongodb_client import write_stamps
from core.domain.entities.protocol_stat_entity import ProtocolStatEntity
from core.repositories.protocol_stat_repository import ProtocolStatRepository


class ProtocolStatRepositoryMongoDB(ProtocolStatRepository):
    """
    MongoDB repository for protocol stats (append-only log keyed by remote_updated_at).
    """

    COLLECTION = "dex_protocol_stats"

    def __init__(self, db: AsyncIOMotorDatabase):
        self._db = db

    async def ensure_indexes(self) -> None:
        await self._db[self.COLLECTION].create_index([("remote_updated_at", -1)])

    async def append(self, stat: ProtocolStatEntity) -> None:
        now_ms, now_iso = write_stamps()
        payload = stat.to_mongo()
        payload.pop("_id", None)
        payload["created_at"] = now_ms
        payload["created_at_iso"] = now_iso
        await self._db[self.COLLECTION].insert_one(payload)

    async def get_latest(self) -> Optional[ProtocolStatEntity]:
        doc = await self._db[self.COLLECTION].find_one({}, sort=[("remote_updated_at", -1)])
        return ProtocolStatEntity.from_mongo(doc) if doc else None

    async def list_all(self) -> List[ProtocolStatEntity]:
        docs = await self._db[self.COLLECTION].find({}).sort("remote_updated_at", 1).to_list(length=None)
        return [ProtocolStatEntity.from_mongo(d) for d in docs if d]

    async def daily_volume(self) -> List[Dict[str, Any]]:
        pipeline: List[Dict[str, Any]] = [
            {
                "$group": {
                    "_id": {"$dateToString": {"format": "%Y-%m-%d", "date": "$remote_updated_at"}},
                    "min_volume": {"$min": "$total_volume_usd"},
                    "max_volume": {"$max": "$total_volume_usd"},
                }
            },
            {"$project": {"_id": 0, "date": "$_id", "volume_usd": {"$subtract": ["$max_volume", "$min_volume"]}}},
            {"$sort": {"date": 1}},
        ]
        return await self._db[self.COLLECTION].aggregate(pipeline).to_list(length=None)

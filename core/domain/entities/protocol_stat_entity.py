from __future__ import annotations

from datetime import datetime

from core.domain.entities.base_entity import MongoEntity


class ProtocolStatEntity(MongoEntity):
    """
    Protocol-wide totals observed at a point in time.

    Append-only; daily volume is derived from the min/max of
    total_volume_usd within each day.
    """

    dex: str
    total_tvl: float = 0.0
    total_volume_usd: float = 0.0
    pool_count: int = 0

    remote_updated_at: datetime

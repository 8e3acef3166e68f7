from __future__ import annotations

from datetime import datetime

from core.domain.entities.base_entity import MongoEntity

WINDOWS = ("1h", "4h", "12h", "1d", "3d", "7d")


class TokenSnapshotEntity(MongoEntity):
    """
    Time-series point for a listed token.

    Keyed by (token_address, snapped_at) where snapped_at is a time bucket
    (minute by default). Repeated polls in the same bucket overwrite the row.
    """

    token_address: str
    snapped_at: datetime

    price: float = 0.0
    market_cap: float = 0.0

    volume_1h: float = 0.0
    volume_4h: float = 0.0
    volume_12h: float = 0.0
    volume_1d: float = 0.0
    volume_3d: float = 0.0
    volume_7d: float = 0.0

    change_1h: float = 0.0
    change_4h: float = 0.0
    change_12h: float = 0.0
    change_1d: float = 0.0
    change_3d: float = 0.0
    change_7d: float = 0.0

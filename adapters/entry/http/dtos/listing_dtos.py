from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ListedTokenOutDTO(BaseModel):
    """
    Response DTO for the latest state of an LFG-listed token.
    """
    token_address: str
    ticker: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    decimals: Optional[int] = None
    state: Optional[str] = None

    price: float = 0.0
    market_cap: float = 0.0
    volume: Dict[str, float] = Field(default_factory=dict)
    price_change: Dict[str, float] = Field(default_factory=dict)

    updated_at_remote: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None


class TokenSnapshotOutDTO(BaseModel):
    """
    One bucketed time-series point.
    """
    token_address: str
    snapped_at: datetime
    price: float
    market_cap: float

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


class TokenHistoryOutDTO(BaseModel):
    token_address: str
    count: int
    items: List[TokenSnapshotOutDTO]
    meta: Dict[str, Any] = Field(default_factory=dict)

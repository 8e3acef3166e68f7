from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.domain.entities.base_entity import MongoEntity


class PoolTokenRef(BaseModel):
    """
    Back-reference from a pool to one of its tokens (by address, not ownership).
    """

    address: str
    symbol: str = ""
    name: str = ""
    decimals: int = 0


class PoolEntity(MongoEntity):
    """
    Liquidity pool snapshot.

    The same shape is used for the append-only history collection and the
    latest projection (one document per (dex, address)).

    remote_updated_at comes from the upstream payload, not from the local
    write time (see updated_at for that).
    """

    address: str
    dex: str

    token0: PoolTokenRef
    token1: PoolTokenRef

    token0_volume: float = 0.0
    token1_volume: float = 0.0
    token0_fees: float = 0.0
    token1_fees: float = 0.0

    # reserves are converted from fixed-point integers using each side's decimals
    token0_reserves: float = 0.0
    token1_reserves: float = 0.0

    tvl: float = 0.0
    volume_usd: float = 0.0
    fees_usd: float = 0.0
    apr: float = 0.0

    has_usd_values: bool = False
    has_active_farm: bool = False
    farm_apr: float = 0.0

    regular_fee_rate: Optional[float] = None
    discounted_fee_rate: Optional[float] = None

    remote_updated_at: datetime

    extras: Dict[str, Any] = Field(default_factory=dict)

    @property
    def identity(self) -> tuple[str, str]:
        return (self.dex, self.address)

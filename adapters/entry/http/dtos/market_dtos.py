from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ProtocolStatOutDTO(BaseModel):
    """
    Response DTO for protocol-wide totals.
    """
    dex: str
    total_tvl: float
    total_volume_usd: float
    pool_count: int
    remote_updated_at: datetime


class DailyVolumeOutDTO(BaseModel):
    date: str = Field(..., description="UTC day, YYYY-MM-DD")
    volume_usd: float = Field(..., description="max - min of the cumulative protocol volume within the day")


class TokenOutDTO(BaseModel):
    """
    Response DTO for tracked DEX tokens.
    """
    address: str
    decimals: int
    name: str
    symbol: str
    logo_uri: str = ""
    verified: bool = False
    rank: int
    last_synced_at: Optional[datetime] = None
    extras: Dict[str, Any] = Field(default_factory=dict)


class TokenPriceOutDTO(BaseModel):
    token_address: str
    symbol: str
    name: str
    logo_uri: str = ""
    price_usd: float
    timestamp: datetime


class TokenPriceLatestOutDTO(TokenPriceOutDTO):
    verified: bool = False
    rank: int
    decimals: int


class DailyPriceOutDTO(BaseModel):
    """
    Per-day OHLC-style summary of a token's price history.
    """
    date: str
    avg_price: float
    max_price: float
    min_price: float
    first_price: float
    last_price: float
    symbol: Optional[str] = None
    name: Optional[str] = None
    logo_uri: Optional[str] = None


class PoolTokenOutDTO(BaseModel):
    address: str
    symbol: str = ""
    name: str = ""
    decimals: int = 0


class PoolOutDTO(BaseModel):
    """
    Response DTO for pool snapshots (history rows and latest projection).
    """
    address: str
    dex: str
    token0: PoolTokenOutDTO
    token1: PoolTokenOutDTO

    token0_volume: float
    token1_volume: float
    token0_fees: float
    token1_fees: float
    token0_reserves: float
    token1_reserves: float

    tvl: float
    volume_usd: float
    fees_usd: float
    apr: float
    has_usd_values: bool
    has_active_farm: bool
    farm_apr: float
    regular_fee_rate: Optional[float] = None
    discounted_fee_rate: Optional[float] = None

    remote_updated_at: datetime
    extras: Dict[str, Any] = Field(default_factory=dict)

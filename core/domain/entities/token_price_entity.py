from __future__ import annotations

from datetime import datetime

from core.domain.entities.base_entity import MongoEntity
from core.domain.entities.token_entity import UNRANKED


class TokenPriceEntity(MongoEntity):
    """
    One observed USD price of a token (history row).

    Rows are appended once per sync cycle, even when the price did not change.
    """

    token_address: str
    symbol: str
    name: str
    logo_uri: str = ""

    price_usd: float
    timestamp: datetime


class TokenPriceLatestEntity(TokenPriceEntity):
    """
    Current price projection: exactly one document per token_address.
    """

    verified: bool = False
    rank: int = UNRANKED
    decimals: int = 0

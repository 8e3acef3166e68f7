from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from core.domain.entities.base_entity import MongoEntity


class ListedTokenEntity(MongoEntity):
    """
    A token from the LFG launchpad listing.

    Only token_address is guaranteed; the rest mirrors whatever the listing
    returned on the last sync. Unknown upstream fields land in extras.
    """

    token_address: str
    deployer_address: Optional[str] = None

    ticker: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    color_hex: Optional[str] = None

    total_supply: Optional[float] = None
    decimals: Optional[int] = None
    version: Optional[int] = None

    dev_lock: Optional[str] = None
    is_hyped_launch: bool = False
    bonding_curve: Optional[str] = None
    state: Optional[str] = None
    is_nsfw: bool = False
    tx_hash: Optional[str] = None
    socials: Optional[Dict[str, Any]] = None

    price: float = 0.0
    market_cap: float = 0.0
    volume: Dict[str, float] = Field(default_factory=dict)
    price_change: Dict[str, float] = Field(default_factory=dict)

    updated_at_remote: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None

    extras: Dict[str, Any] = Field(default_factory=dict)

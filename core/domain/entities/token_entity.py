from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import Field

from core.domain.entities.base_entity import MongoEntity

UNRANKED = 1_000_000_000


class TokenEntity(MongoEntity):
    """
    A DEX token we track (master list for pool gating).

    Identity is the lowercased contract address. The document is overwritten
    on every sync that includes the token and is never deleted by the sync.
    """

    address: str
    decimals: int
    name: str
    symbol: str

    logo_uri: str = ""
    verified: bool = False
    rank: int = UNRANKED  # unranked tokens sort last

    last_synced_at: Optional[datetime] = None

    extras: Dict[str, Any] = Field(default_factory=dict)

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.domain.entities.token_price_entity import TokenPriceEntity, TokenPriceLatestEntity


class TokenPriceRepository(ABC):
    """
    Price history (append-only) plus the latest-price projection.
    """

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def append_history(self, price: TokenPriceEntity) -> None:
        """
        Insert a new history row. Never upserts.
        """
        raise NotImplementedError

    @abstractmethod
    async def upsert_latest(self, latest: TokenPriceLatestEntity) -> None:
        """
        Replace-or-insert the single current price for latest.token_address.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_latest(self, token_address: str) -> Optional[TokenPriceLatestEntity]: ...

    @abstractmethod
    async def list_history(self, token_address: str, *, skip: int, limit: int) -> List[TokenPriceEntity]: ...

    @abstractmethod
    async def daily_summary(self, token_address: str) -> List[Dict[str, Any]]:
        """
        Per-day avg/min/max/first/last price, ascending by date.
        """
        raise NotImplementedError

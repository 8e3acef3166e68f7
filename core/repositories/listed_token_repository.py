from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.domain.entities.listed_token_entity import ListedTokenEntity


class ListedTokenRepository(ABC):
    """Repository interface for the launchpad token listing (latest state only)."""

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def upsert(self, token: ListedTokenEntity) -> None: ...

    @abstractmethod
    async def get_by_address(self, token_address: str) -> Optional[ListedTokenEntity]: ...

    @abstractmethod
    async def list_by_market_cap(self, *, skip: int, limit: int) -> List[ListedTokenEntity]: ...

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.domain.entities.token_entity import TokenEntity


class TokenRepository(ABC):
    """
    Abstraction for the tracked DEX token master list.
    """

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def upsert(self, token: TokenEntity) -> None:
        """
        Insert or overwrite a token keyed by its lowercased address.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_by_address(self, address: str) -> Optional[TokenEntity]:
        raise NotImplementedError

    @abstractmethod
    async def list_all(self) -> List[TokenEntity]:
        """
        Every stored token (used once per cycle to build the tracked set).
        """
        raise NotImplementedError

    @abstractmethod
    async def list_ranked(self, *, skip: int, limit: int) -> List[TokenEntity]:
        raise NotImplementedError

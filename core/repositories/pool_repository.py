from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from core.domain.entities.pool_entity import PoolEntity


class PoolRepository(ABC):
    """
    Pool history (append-only) plus the latest projection keyed by (dex, address).
    """

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def append_history(self, pool: PoolEntity) -> None:
        raise NotImplementedError

    @abstractmethod
    async def upsert_latest(self, pool: PoolEntity) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get_latest(self, address: str, *, dex: Optional[str] = None) -> Optional[PoolEntity]: ...

    @abstractmethod
    async def list_latest(
        self,
        *,
        sort_field: str,
        descending: bool,
        skip: int,
        limit: int,
    ) -> List[PoolEntity]:
        """
        List current pools. sort_field must already be allow-listed by the caller.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_history(self, *, address: Optional[str], skip: int, limit: int) -> List[PoolEntity]: ...

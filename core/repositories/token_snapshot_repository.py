from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from core.domain.entities.token_snapshot_entity import TokenSnapshotEntity


class TokenSnapshotRepository(ABC):
    """
    Repository interface for bucketed token time series.

    (token_address, snapped_at) is unique at the storage layer.
    """

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def upsert_snapshot(self, snapshot: TokenSnapshotEntity) -> None:
        """
        Insert the point for its bucket, or overwrite it if the bucket already exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_history(
        self,
        token_address: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = False,
        limit: int = 500,
    ) -> List[TokenSnapshotEntity]: ...

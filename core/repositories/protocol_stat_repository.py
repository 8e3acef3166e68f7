from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.domain.entities.protocol_stat_entity import ProtocolStatEntity


class ProtocolStatRepository(ABC):
    """Repository interface for append-only protocol stats."""

    @abstractmethod
    async def ensure_indexes(self) -> None: ...

    @abstractmethod
    async def append(self, stat: ProtocolStatEntity) -> None: ...

    @abstractmethod
    async def get_latest(self) -> Optional[ProtocolStatEntity]: ...

    @abstractmethod
    async def list_all(self) -> List[ProtocolStatEntity]: ...

    @abstractmethod
    async def daily_volume(self) -> List[Dict[str, Any]]:
        """
        Per-day traded volume: max(total_volume_usd) - min(total_volume_usd).
        """
        raise NotImplementedError

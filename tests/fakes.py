from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple

from core.domain.entities.listed_token_entity import ListedTokenEntity
from core.domain.entities.pool_entity import PoolEntity
from core.domain.entities.protocol_stat_entity import ProtocolStatEntity
from core.domain.entities.token_entity import TokenEntity
from core.domain.entities.token_price_entity import TokenPriceEntity, TokenPriceLatestEntity
from core.domain.entities.token_snapshot_entity import TokenSnapshotEntity
from core.repositories.listed_token_repository import ListedTokenRepository
from core.repositories.pool_repository import PoolRepository
from core.repositories.protocol_stat_repository import ProtocolStatRepository
from core.repositories.token_price_repository import TokenPriceRepository
from core.repositories.token_repository import TokenRepository
from core.repositories.token_snapshot_repository import TokenSnapshotRepository


class WriteFailure(RuntimeError):
    pass


class InMemoryTokenRepository(TokenRepository):
    def __init__(self) -> None:
        self.docs: Dict[str, TokenEntity] = {}
        self.fail_on: Set[str] = set()

    async def ensure_indexes(self) -> None:
        return None

    async def upsert(self, token: TokenEntity) -> None:
        if token.address in self.fail_on:
            raise WriteFailure(token.address)
        self.docs[token.address] = token.model_copy(deep=True)

    async def get_by_address(self, address: str) -> Optional[TokenEntity]:
        return self.docs.get(address.strip().lower())

    async def list_all(self) -> List[TokenEntity]:
        return list(self.docs.values())

    async def list_ranked(self, *, skip: int, limit: int) -> List[TokenEntity]:
        ranked = sorted(self.docs.values(), key=lambda t: t.rank)
        return ranked[skip:skip + limit]


class InMemoryTokenPriceRepository(TokenPriceRepository):
    def __init__(self) -> None:
        self.history: List[TokenPriceEntity] = []
        self.latest: Dict[str, TokenPriceLatestEntity] = {}
        self.fail_history_on: Set[str] = set()

    async def ensure_indexes(self) -> None:
        return None

    async def append_history(self, price: TokenPriceEntity) -> None:
        if price.token_address in self.fail_history_on:
            raise WriteFailure(price.token_address)
        self.history.append(price)

    async def upsert_latest(self, latest: TokenPriceLatestEntity) -> None:
        self.latest[latest.token_address] = latest

    async def get_latest(self, token_address: str) -> Optional[TokenPriceLatestEntity]:
        return self.latest.get(token_address)

    async def list_history(self, token_address: str, *, skip: int, limit: int) -> List[TokenPriceEntity]:
        rows = [p for p in self.history if p.token_address == token_address]
        return rows[skip:skip + limit]

    async def daily_summary(self, token_address: str) -> List[Dict[str, Any]]:
        return []


class InMemoryPoolRepository(PoolRepository):
    def __init__(self) -> None:
        self.history: List[PoolEntity] = []
        self.latest: Dict[Tuple[str, str], PoolEntity] = {}
        self.fail_history_on: Set[str] = set()
        self.fail_latest_on: Set[str] = set()

    async def ensure_indexes(self) -> None:
        return None

    async def append_history(self, pool: PoolEntity) -> None:
        if pool.address in self.fail_history_on:
            raise WriteFailure(pool.address)
        self.history.append(pool)

    async def upsert_latest(self, pool: PoolEntity) -> None:
        if pool.address in self.fail_latest_on:
            raise WriteFailure(pool.address)
        self.latest[pool.identity] = pool

    async def get_latest(self, address: str, *, dex: Optional[str] = None) -> Optional[PoolEntity]:
        for (d, a), pool in self.latest.items():
            if a == address and (dex is None or d == dex):
                return pool
        return None

    async def list_latest(self, *, sort_field: str, descending: bool, skip: int, limit: int) -> List[PoolEntity]:
        rows = sorted(self.latest.values(), key=lambda p: getattr(p, sort_field), reverse=descending)
        return rows[skip:skip + limit]

    async def list_history(self, *, address: Optional[str], skip: int, limit: int) -> List[PoolEntity]:
        rows = [p for p in self.history if address is None or p.address == address]
        return rows[skip:skip + limit]


class InMemoryProtocolStatRepository(ProtocolStatRepository):
    def __init__(self) -> None:
        self.rows: List[ProtocolStatEntity] = []
        self.fail = False

    async def ensure_indexes(self) -> None:
        return None

    async def append(self, stat: ProtocolStatEntity) -> None:
        if self.fail:
            raise WriteFailure("protocol")
        self.rows.append(stat)

    async def get_latest(self) -> Optional[ProtocolStatEntity]:
        return max(self.rows, key=lambda s: s.remote_updated_at) if self.rows else None

    async def list_all(self) -> List[ProtocolStatEntity]:
        return sorted(self.rows, key=lambda s: s.remote_updated_at)

    async def daily_volume(self) -> List[Dict[str, Any]]:
        return []


class InMemoryListedTokenRepository(ListedTokenRepository):
    def __init__(self) -> None:
        self.docs: Dict[str, ListedTokenEntity] = {}

    async def ensure_indexes(self) -> None:
        return None

    async def upsert(self, token: ListedTokenEntity) -> None:
        self.docs[token.token_address] = token

    async def get_by_address(self, token_address: str) -> Optional[ListedTokenEntity]:
        return self.docs.get(token_address)

    async def list_by_market_cap(self, *, skip: int, limit: int) -> List[ListedTokenEntity]:
        rows = sorted(self.docs.values(), key=lambda t: t.market_cap, reverse=True)
        return rows[skip:skip + limit]


class InMemoryTokenSnapshotRepository(TokenSnapshotRepository):
    """
    Keyed like the unique (token_address, snapped_at) index: same key overwrites.
    """

    def __init__(self) -> None:
        self.rows: Dict[Tuple[str, datetime], TokenSnapshotEntity] = {}
        self.writes = 0

    async def ensure_indexes(self) -> None:
        return None

    async def upsert_snapshot(self, snapshot: TokenSnapshotEntity) -> None:
        self.writes += 1
        self.rows[(snapshot.token_address, snapshot.snapped_at)] = snapshot

    async def list_history(
        self,
        token_address: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        descending: bool = False,
        limit: int = 500,
    ) -> List[TokenSnapshotEntity]:
        rows = [
            s for (addr, ts), s in self.rows.items()
            if addr == token_address and (start is None or ts >= start) and (end is None or ts <= end)
        ]
        rows.sort(key=lambda s: s.snapped_at, reverse=descending)
        return rows[:limit]

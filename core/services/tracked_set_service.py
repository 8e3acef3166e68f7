from __future__ import annotations

from enum import Enum
from typing import Callable, FrozenSet, Iterable, Optional

from core.domain.entities.pool_entity import PoolEntity
from core.domain.entities.token_entity import TokenEntity

TrackingPredicate = Callable[[TokenEntity], bool]


def verified_only(token: TokenEntity) -> bool:
    """Default tracking policy: only tokens flagged as verified upstream."""
    return bool(token.verified)


def track_all(token: TokenEntity) -> bool:
    return True


class PoolTrackingMode(str, Enum):
    """
    Which pool side must reference a tracked token for the pool to be kept.
    """

    ANY = "any"
    TOKEN0 = "token0"
    TOKEN1 = "token1"
    BOTH = "both"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PoolTrackingMode":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.ANY


class TrackedSetService:
    """
    Membership set of tracked token addresses for one sync cycle.

    Built once per cycle so each pool check is an O(1) set lookup.
    """

    def __init__(self, addresses: Iterable[str], *, mode: PoolTrackingMode = PoolTrackingMode.ANY) -> None:
        self._addresses: FrozenSet[str] = frozenset(
            a.strip().lower() for a in addresses if isinstance(a, str) and a.strip()
        )
        self._mode = mode

    @classmethod
    def build(
        cls,
        tokens: Iterable[TokenEntity],
        predicate: TrackingPredicate = verified_only,
        *,
        mode: PoolTrackingMode = PoolTrackingMode.ANY,
    ) -> "TrackedSetService":
        return cls((t.address for t in tokens if predicate(t)), mode=mode)

    def __len__(self) -> int:
        return len(self._addresses)

    @property
    def mode(self) -> PoolTrackingMode:
        return self._mode

    def is_tracked(self, address: Optional[str]) -> bool:
        if not address:
            return False
        return address.strip().lower() in self._addresses

    def admits(self, pool: PoolEntity) -> bool:
        t0 = self.is_tracked(pool.token0.address)
        t1 = self.is_tracked(pool.token1.address)

        if self._mode is PoolTrackingMode.TOKEN0:
            return t0
        if self._mode is PoolTrackingMode.TOKEN1:
            return t1
        if self._mode is PoolTrackingMode.BOTH:
            return t0 and t1
        return t0 or t1

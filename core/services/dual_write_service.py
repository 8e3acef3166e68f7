from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Hashable, Iterable, List, Optional, TypeVar

T = TypeVar("T")

WriteFn = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class DualWriteOutcome:
    history_ok: bool
    latest_ok: bool

    @property
    def errors(self) -> int:
        return int(not self.history_ok) + int(not self.latest_ok)


class DualWriteService:
    """
    Performs the history append and the latest upsert for one entity.

    The two writes share no transaction and are separate failure domains:
    a failing history insert does not stop the latest upsert, and neither
    failure escapes to the caller. The next cycle rewrites the latest
    projection from upstream anyway.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def write(
        self,
        *,
        identity: str,
        kind: str,
        append_history: Optional[WriteFn],
        upsert_latest: Optional[WriteFn],
    ) -> DualWriteOutcome:
        """
        Args:
            identity: entity key, used only for log context.
            kind: entity label for logs, e.g. "pool".
            append_history: coroutine factory for the history insert (None = no history write).
            upsert_latest: coroutine factory for the latest upsert (None = no latest write).
        """
        history_ok = await self._attempt(append_history, identity=identity, kind=kind, target="history")
        latest_ok = await self._attempt(upsert_latest, identity=identity, kind=kind, target="latest")
        return DualWriteOutcome(history_ok=history_ok, latest_ok=latest_ok)

    async def _attempt(self, fn: Optional[WriteFn], *, identity: str, kind: str, target: str) -> bool:
        if fn is None:
            return True
        try:
            await fn()
            return True
        except Exception as exc:
            self._logger.exception("Failed %s %s write identity=%s: %s", kind, target, identity, exc)
            return False

    @staticmethod
    def dedupe(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
        """
        Keep one item per identity (last occurrence wins, first-seen order kept),
        so a batch never issues two latest upserts for the same key.
        """
        by_key: Dict[Hashable, T] = {}
        for item in items:
            # assigning to an existing key keeps its first-seen position
            by_key[key(item)] = item
        return list(by_key.values())

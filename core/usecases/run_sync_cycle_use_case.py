from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from core.domain.entities.sync_source_entity import SyncResult, SyncSourceEntity


class RunSyncCycleUseCase:
    """
    Runs one sync cycle for one configured source.

    handlers maps a source kind ("zealous", "lfg_top", ...) to a use case
    exposing `async execute() -> SyncResult`.

    Safe to call repeatedly: every write underneath is an insert of a new
    history row or an upsert by identity. Never raises; an unexpected error
    is logged and reported as errors=1.
    """

    def __init__(
        self,
        *,
        handlers: Mapping[str, Any],
        logger: logging.Logger | None = None,
    ) -> None:
        self._handlers = dict(handlers)
        self._logger = logger or logging.getLogger(self.__class__.__name__)

        self.last_results: Dict[str, SyncResult] = {}
        self.last_run_at: Dict[str, datetime] = {}

    def supports(self, kind: str) -> bool:
        return (kind or "").strip().lower() in self._handlers

    async def execute(self, source: SyncSourceEntity) -> SyncResult:
        if not source.enabled:
            self._logger.info("Source %s is disabled, skipping", source.name)
            return SyncResult()

        handler: Optional[Any] = self._handlers.get((source.kind or "").strip().lower())
        if handler is None:
            self._logger.warning("Unknown source kind=%s (skipping). source=%s", source.kind, source.model_dump())
            return SyncResult()

        try:
            result = await handler.execute()
        except Exception as exc:
            self._logger.exception("Sync cycle failed source=%s: %s", source.name, exc)
            result = SyncResult(errors=1)

        self.last_results[source.name] = result
        self.last_run_at[source.name] = datetime.now(tz=timezone.utc)
        return result

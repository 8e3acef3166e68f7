from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Callable, List, Optional, Tuple

from adapters.external.lfg.lfg_listing_client import LfgListingClient
from core.domain.entities.listed_token_entity import ListedTokenEntity
from core.domain.entities.sync_source_entity import SyncResult
from core.domain.entities.token_snapshot_entity import TokenSnapshotEntity
from core.repositories.listed_token_repository import ListedTokenRepository
from core.repositories.token_snapshot_repository import TokenSnapshotRepository
from core.services.dual_write_service import DualWriteService
from core.services.record_normalizer_service import RecordNormalizerService
from core.services.time_bucket_service import TimeBucketService


class SnapshotListingUseCase:
    """
    Top-N snapshot of the LFG launchpad listing.

    Each cycle:
      - pages through the listing (partial results on page failure)
      - upserts the latest state of every token (keyed by token_address)
      - upserts one time-series point per token for the current time bucket,
        so polls landing in the same bucket overwrite instead of duplicating
    """

    def __init__(
        self,
        *,
        client: LfgListingClient,
        listed_token_repository: ListedTokenRepository,
        token_snapshot_repository: TokenSnapshotRepository,
        normalizer: RecordNormalizerService,
        dual_writer: DualWriteService,
        pages_to_scan: int = 8,
        cap: int = 100,
        lookup_pages: int = 6,
        bucket_width_s: int = TimeBucketService.DEFAULT_WIDTH_S,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._tokens = listed_token_repository
        self._snapshots = token_snapshot_repository
        self._normalizer = normalizer
        self._dual_writer = dual_writer
        self._pages_to_scan = int(pages_to_scan)
        self._cap = int(cap)
        self._lookup_pages = int(lookup_pages)
        self._bucket_width_s = int(bucket_width_s)
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute(self) -> SyncResult:
        raw_items = await self._client.fetch_up_to(self._pages_to_scan, self._cap)
        if not raw_items:
            self._logger.info("LFG listing: no tokens fetched")
            return SyncResult()

        now = self._clock()
        snapped_at = TimeBucketService.floor(now, self._bucket_width_s)

        skipped = 0
        accepted: List[Tuple[ListedTokenEntity, TokenSnapshotEntity]] = []
        for raw in raw_items:
            pair = self._normalize(raw, synced_at=now, snapped_at=snapped_at)
            if pair is None:
                skipped += 1
                continue
            accepted.append(pair)

        errors = 0
        for token, snapshot in DualWriteService.dedupe(accepted, key=lambda pair: pair[0].token_address):
            outcome = await self._dual_writer.write(
                identity=token.token_address,
                kind="listed token",
                append_history=partial(self._snapshots.upsert_snapshot, snapshot),
                upsert_latest=partial(self._tokens.upsert, token),
            )
            errors += outcome.errors

        result = SyncResult(processed=len(accepted), skipped=skipped, errors=errors)
        self._logger.info("LFG listing snap snapped_at=%s result=%s", snapped_at.isoformat(), result.model_dump())
        return result

    async def snapshot_one(self, token_address: str) -> Optional[TokenSnapshotEntity]:
        """
        On-demand snapshot of a single token.

        Returns None when the token is not on the scanned pages. Write errors
        propagate to the caller.
        """
        raw = await self._client.find_token(token_address, max_pages=self._lookup_pages)
        if raw is None:
            return None

        now = self._clock()
        pair = self._normalize(raw, synced_at=now, snapped_at=TimeBucketService.floor(now, self._bucket_width_s))
        if pair is None:
            return None

        token, snapshot = pair
        await self._tokens.upsert(token)
        await self._snapshots.upsert_snapshot(snapshot)
        return snapshot

    def _normalize(
        self,
        raw: object,
        *,
        synced_at: datetime,
        snapped_at: datetime,
    ) -> Optional[Tuple[ListedTokenEntity, TokenSnapshotEntity]]:
        token = self._normalizer.listed_token(raw, synced_at=synced_at)
        if token is None:
            return None
        snapshot = self._normalizer.token_snapshot(raw, snapped_at=snapped_at)
        if snapshot is None:
            return None
        return token, snapshot

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

from adapters.external.zealous.zealous_http_client import ZealousHttpClient
from core.domain.entities.pool_entity import PoolEntity
from core.domain.entities.protocol_stat_entity import ProtocolStatEntity
from core.domain.entities.sync_source_entity import SyncResult
from core.domain.entities.token_entity import TokenEntity
from core.domain.entities.token_price_entity import TokenPriceEntity, TokenPriceLatestEntity
from core.repositories.pool_repository import PoolRepository
from core.repositories.protocol_stat_repository import ProtocolStatRepository
from core.repositories.token_price_repository import TokenPriceRepository
from core.repositories.token_repository import TokenRepository
from core.services.dual_write_service import DualWriteService
from core.services.record_normalizer_service import RecordNormalizerService, to_opt_float
from core.services.tracked_set_service import PoolTrackingMode, TrackedSetService, TrackingPredicate, verified_only


class SyncZealousUseCase:
    """
    One sync cycle of the Zealous DEX.

    Stages:
      1. tokens: fetch -> normalize -> tracking policy -> upsert token,
         then dual-write price history + latest price when a price is known
      2. tracked set: built once from the token store
      3. pools: fetch -> append protocol stat -> normalize -> tracked-set gate
         -> dedupe -> dual-write pool history + latest

    A failing stage is counted and logged; later stages still run against
    whatever the store already holds.
    """

    def __init__(
        self,
        *,
        client: ZealousHttpClient,
        token_repository: TokenRepository,
        token_price_repository: TokenPriceRepository,
        pool_repository: PoolRepository,
        protocol_stat_repository: ProtocolStatRepository,
        normalizer: RecordNormalizerService,
        dual_writer: DualWriteService,
        tracking_predicate: TrackingPredicate = verified_only,
        pool_tracking_mode: PoolTrackingMode = PoolTrackingMode.ANY,
        price_fallback: bool = True,
        clock: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._tokens = token_repository
        self._prices = token_price_repository
        self._pools = pool_repository
        self._protocol = protocol_stat_repository
        self._normalizer = normalizer
        self._dual_writer = dual_writer
        self._is_tracked = tracking_predicate
        self._pool_mode = pool_tracking_mode
        self._price_fallback = bool(price_fallback)
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute(self) -> SyncResult:
        observed_at = self._clock()

        tokens_result = await self._sync_tokens(observed_at)
        pools_result = await self._sync_pools(observed_at)

        self._logger.info(
            "Zealous sync done tokens=%s pools=%s",
            tokens_result.model_dump(),
            pools_result.model_dump(),
        )
        return tokens_result.merge(pools_result)

    async def _sync_tokens(self, observed_at: datetime) -> SyncResult:
        try:
            raw_tokens = await self._client.fetch_tokens()
        except Exception as exc:
            self._logger.exception("Zealous tokens fetch failed: %s", exc)
            return SyncResult(errors=1)

        skipped = 0
        filtered = 0
        accepted: List[Tuple[TokenEntity, Optional[float]]] = []

        for raw in raw_tokens:
            token = self._normalizer.token(raw)
            if token is None:
                skipped += 1
                continue
            if not self._is_tracked(token):
                filtered += 1
                continue
            accepted.append((token, self._normalizer.token_price(raw)))

        batch = DualWriteService.dedupe(accepted, key=lambda pair: pair[0].address)
        fallback = await self._fallback_prices(batch)

        errors = 0
        for token, price in batch:
            if price is None:
                price = to_opt_float(fallback.get(token.address))
            errors += await self._persist_token(token, price, observed_at)

        return SyncResult(processed=len(accepted), skipped=skipped, errors=errors, filtered=filtered)

    async def _fallback_prices(self, batch: List[Tuple[TokenEntity, Optional[float]]]) -> Dict[str, Any]:
        """
        Fetch the prices map only when some admitted token came without a price.
        """
        if not self._price_fallback or all(price is not None for _, price in batch):
            return {}
        try:
            return await self._client.fetch_prices()
        except Exception as exc:
            self._logger.warning("Zealous prices fetch failed, tokens without price keep none: %s", exc)
            return {}

    async def _persist_token(self, token: TokenEntity, price: Optional[float], observed_at: datetime) -> int:
        errors = 0
        token.last_synced_at = observed_at

        try:
            await self._tokens.upsert(token)
        except Exception as exc:
            errors += 1
            self._logger.exception("Failed token upsert identity=%s: %s", token.address, exc)

        if price is None:
            return errors

        history = TokenPriceEntity(
            token_address=token.address,
            symbol=token.symbol,
            name=token.name,
            logo_uri=token.logo_uri,
            price_usd=price,
            timestamp=observed_at,
        )
        latest = TokenPriceLatestEntity(
            **history.model_dump(exclude_none=True),
            verified=token.verified,
            rank=token.rank,
            decimals=token.decimals,
        )
        outcome = await self._dual_writer.write(
            identity=token.address,
            kind="token price",
            append_history=partial(self._prices.append_history, history),
            upsert_latest=partial(self._prices.upsert_latest, latest),
        )
        return errors + outcome.errors

    async def _sync_pools(self, observed_at: datetime) -> SyncResult:
        try:
            tracked = TrackedSetService.build(
                await self._tokens.list_all(),
                self._is_tracked,
                mode=self._pool_mode,
            )
        except Exception as exc:
            self._logger.exception("Could not build tracked token set: %s", exc)
            return SyncResult(errors=1)

        try:
            protocol_raw, raw_pools = await self._client.fetch_pools()
        except Exception as exc:
            self._logger.exception("Zealous pools fetch failed: %s", exc)
            return SyncResult(errors=1)

        errors = await self._append_protocol(self._normalizer.protocol(protocol_raw, observed_at=observed_at))

        skipped = 0
        filtered = 0
        accepted: List[PoolEntity] = []
        for raw in raw_pools:
            pool = self._normalizer.pool(raw, observed_at=observed_at)
            if pool is None:
                skipped += 1
                continue
            if not tracked.admits(pool):
                filtered += 1
                continue
            accepted.append(pool)

        for pool in DualWriteService.dedupe(accepted, key=lambda p: p.identity):
            outcome = await self._dual_writer.write(
                identity=f"{pool.dex}:{pool.address}",
                kind="pool",
                append_history=partial(self._pools.append_history, pool),
                upsert_latest=partial(self._pools.upsert_latest, pool),
            )
            errors += outcome.errors

        self._logger.debug("Tracked set size=%s mode=%s", len(tracked), tracked.mode.value)
        return SyncResult(processed=len(accepted) + 1, skipped=skipped, errors=errors, filtered=filtered)

    async def _append_protocol(self, stat: ProtocolStatEntity) -> int:
        try:
            await self._protocol.append(stat)
            return 0
        except Exception as exc:
            self._logger.exception("Failed to save protocol stats: %s", exc)
            return 1

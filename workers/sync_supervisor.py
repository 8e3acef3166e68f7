from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from adapters.external.database.listed_token_repository_mongodb import ListedTokenRepositoryMongoDB
from adapters.external.database.mongodb_client import get_mongo_client
from adapters.external.database.pool_repository_mongodb import PoolRepositoryMongoDB
from adapters.external.database.protocol_stat_repository_mongodb import ProtocolStatRepositoryMongoDB
from adapters.external.database.token_price_repository_mongodb import TokenPriceRepositoryMongoDB
from adapters.external.database.token_repository_mongodb import TokenRepositoryMongoDB
from adapters.external.database.token_snapshot_repository_mongodb import TokenSnapshotRepositoryMongoDB
from adapters.external.http.json_http_client import JsonHttpClient
from adapters.external.lfg.lfg_listing_client import LfgListingClient
from adapters.external.zealous.zealous_http_client import ZealousHttpClient
from config.settings import settings
from core.domain.entities.sync_source_entity import SyncSourceEntity
from core.services.dual_write_service import DualWriteService
from core.services.record_normalizer_service import RecordNormalizerService
from core.services.tracked_set_service import PoolTrackingMode, track_all, verified_only
from core.usecases.run_sync_cycle_use_case import RunSyncCycleUseCase
from core.usecases.snapshot_listing_use_case import SnapshotListingUseCase
from core.usecases.sync_zealous_use_case import SyncZealousUseCase
from workers.snapshot_scheduler import SnapshotScheduler


class SyncSupervisor:
    """
    High-level supervisor for api-dex-sync.

    Responsibilities:
    - Connect to MongoDB and ensure indexes.
    - Wire upstream clients, repositories and sync use cases.
    - Build the configured sources from settings and start one single-flight
      scheduler per distinct interval.
    - Close everything on shutdown.
    """

    def __init__(self) -> None:
        self._logger = logging.getLogger(self.__class__.__name__)
        self._mongo_client: AsyncIOMotorClient | None = None
        self._db: AsyncIOMotorDatabase | None = None

        self._zealous_client: ZealousHttpClient | None = None
        self._lfg_client: LfgListingClient | None = None

        self._cycle_uc: RunSyncCycleUseCase | None = None
        self._listing_uc: SnapshotListingUseCase | None = None
        self._schedulers: List[SnapshotScheduler] = []

    @property
    def db(self) -> AsyncIOMotorDatabase | None:
        """
        Expose the database handle after start().
        """
        return self._db

    @property
    def listing_use_case(self) -> SnapshotListingUseCase | None:
        return self._listing_uc

    @property
    def schedulers(self) -> List[SnapshotScheduler]:
        return list(self._schedulers)

    async def start(self) -> None:
        """
        Initialize DB, ensure indexes, wire the pipeline and start the schedulers.
        """
        self._mongo_client = get_mongo_client()
        self._db = self._mongo_client[settings.MONGODB_DB_NAME]

        token_repo = TokenRepositoryMongoDB(self._db)
        price_repo = TokenPriceRepositoryMongoDB(self._db)
        pool_repo = PoolRepositoryMongoDB(self._db)
        protocol_repo = ProtocolStatRepositoryMongoDB(self._db)
        listed_repo = ListedTokenRepositoryMongoDB(self._db)
        snapshot_repo = TokenSnapshotRepositoryMongoDB(self._db)

        for repo in (token_repo, price_repo, pool_repo, protocol_repo, listed_repo, snapshot_repo):
            await repo.ensure_indexes()

        self._zealous_client = ZealousHttpClient(
            http=self._new_http_client(),
            tokens_url=settings.ZEALOUS_TOKENS_URL,
            pools_url=settings.ZEALOUS_POOLS_URL,
            prices_url=settings.ZEALOUS_PRICES_URL,
        )
        self._lfg_client = LfgListingClient(
            http=self._new_http_client(),
            base_url=settings.LFG_BASE_URL,
            sort_order=settings.LFG_SORT_ORDER,
            view_mode=settings.LFG_VIEW_MODE,
        )

        normalizer = RecordNormalizerService(dex=settings.ZEALOUS_DEX_TAG)
        dual_writer = DualWriteService()

        zealous_uc = SyncZealousUseCase(
            client=self._zealous_client,
            token_repository=token_repo,
            token_price_repository=price_repo,
            pool_repository=pool_repo,
            protocol_stat_repository=protocol_repo,
            normalizer=normalizer,
            dual_writer=dual_writer,
            tracking_predicate=track_all if settings.TRACK_UNVERIFIED_TOKENS else verified_only,
            pool_tracking_mode=PoolTrackingMode.parse(settings.POOL_TRACKING_MODE),
        )
        self._listing_uc = SnapshotListingUseCase(
            client=self._lfg_client,
            listed_token_repository=listed_repo,
            token_snapshot_repository=snapshot_repo,
            normalizer=normalizer,
            dual_writer=dual_writer,
            pages_to_scan=settings.LFG_PAGES_TO_SCAN,
            cap=settings.LFG_TOP_CAP,
            lookup_pages=settings.LFG_LOOKUP_PAGES,
            bucket_width_s=settings.SNAPSHOT_BUCKET_S,
        )
        self._cycle_uc = RunSyncCycleUseCase(handlers={"zealous": zealous_uc, "lfg_top": self._listing_uc})

        if not settings.SYNC_ENABLED:
            self._logger.info("SYNC_ENABLED=false, schedulers not started (query API only)")
            return

        sources = [s for s in self.build_sources() if s.enabled]
        if not sources:
            self._logger.error("No enabled sync sources configured.")
            return

        by_interval: "OrderedDict[float, List[SyncSourceEntity]]" = OrderedDict()
        for source in sources:
            by_interval.setdefault(float(source.interval_s), []).append(source)

        for interval_s, group in by_interval.items():
            self.start_scheduler(interval_s, group)

        self._logger.info(
            "All sync schedulers started. schedulers=%s sources=%s",
            len(self._schedulers),
            [s.name for s in sources],
        )

    def build_sources(self) -> List[SyncSourceEntity]:
        """
        Sources configured from the environment.
        """
        return [
            SyncSourceEntity(
                name="zealous",
                kind="zealous",
                enabled=settings.ZEALOUS_SYNC_ENABLED,
                interval_s=settings.ZEALOUS_SYNC_INTERVAL_S,
                config={"dex": settings.ZEALOUS_DEX_TAG},
            ),
            SyncSourceEntity(
                name="lfg_top100",
                kind="lfg_top",
                enabled=settings.LFG_CRON_ENABLED,
                interval_s=settings.LFG_SYNC_INTERVAL_S,
                config={"pages": settings.LFG_PAGES_TO_SCAN, "cap": settings.LFG_TOP_CAP},
            ),
        ]

    def start_scheduler(self, interval_s: float, sources: List[SyncSourceEntity]) -> SnapshotScheduler:
        """
        Start a single-flight scheduler that runs the given sources one after
        another on every tick.
        """
        if self._cycle_uc is None:
            raise RuntimeError("SyncSupervisor.start() must run before start_scheduler()")

        cycle_uc = self._cycle_uc
        group = list(sources)

        async def run_cycle() -> None:
            for source in group:
                result = await cycle_uc.execute(source)
                self._logger.info("Sync cycle source=%s result=%s", source.name, result.model_dump())

        scheduler = SnapshotScheduler(
            name="+".join(s.name for s in group) or "empty",
            interval_s=interval_s,
            cycle_fn=run_cycle,
            run_on_start=settings.RUN_SYNC_ON_START,
        )
        scheduler.start()
        self._schedulers.append(scheduler)

        self._logger.info("Scheduler registered: %s interval_s=%s", scheduler.name, interval_s)
        return scheduler

    async def trigger_now(self) -> Dict[str, bool]:
        """
        Tick every scheduler immediately and wait for the cycles.

        Returns:
            scheduler name -> True if a cycle ran, False if one was already running.
        """
        if not self._schedulers:
            return {}
        started = await asyncio.gather(*(s.tick() for s in self._schedulers))
        return {s.name: ok for s, ok in zip(self._schedulers, started)}

    def status(self) -> Dict[str, Any]:
        last_results: Dict[str, Any] = {}
        last_run_at: Dict[str, Optional[str]] = {}
        if self._cycle_uc is not None:
            last_results = {k: v.model_dump() for k, v in self._cycle_uc.last_results.items()}
            last_run_at = {k: v.isoformat() for k, v in self._cycle_uc.last_run_at.items()}

        return {
            "sync_enabled": settings.SYNC_ENABLED,
            "schedulers": [s.status() for s in self._schedulers],
            "last_results": last_results,
            "last_run_at": last_run_at,
        }

    async def stop(self) -> None:
        """
        Stop schedulers (waiting for in-flight cycles) and close external clients.
        """
        for s in self._schedulers:
            with contextlib.suppress(Exception):
                await s.stop()
        self._schedulers = []

        if self._zealous_client is not None:
            with contextlib.suppress(Exception):
                await self._zealous_client.aclose()
            self._zealous_client = None

        if self._lfg_client is not None:
            with contextlib.suppress(Exception):
                await self._lfg_client.aclose()
            self._lfg_client = None

        if self._mongo_client:
            self._mongo_client.close()
            self._mongo_client = None

    @staticmethod
    def _new_http_client() -> JsonHttpClient:
        return JsonHttpClient(
            timeout_s=settings.HTTP_TIMEOUT_S,
            connect_timeout_s=settings.HTTP_CONNECT_TIMEOUT_S,
            user_agent=settings.HTTP_USER_AGENT,
            max_retries=settings.HTTP_MAX_RETRIES,
            backoff_base_s=settings.HTTP_BACKOFF_BASE_S,
        )

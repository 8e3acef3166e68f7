import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from adapters.entry.http.admin_router import router as admin_router
from adapters.entry.http.listing_router import router as listing_router
from adapters.entry.http.market_router import router as market_router
from config.settings import settings
from workers.sync_supervisor import SyncSupervisor


def _setup_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


supervisor = SyncSupervisor()


@asynccontextmanager
async def lifespan(app: FastAPI):
    _setup_logging()
    logging.getLogger(__name__).info("Starting %s (lifespan startup)...", settings.APP_NAME)

    await supervisor.start()
    app.state.db = supervisor.db
    app.state.supervisor = supervisor

    try:
        yield
    finally:
        logging.getLogger(__name__).info("Shutting down %s (lifespan shutdown)...", settings.APP_NAME)
        await supervisor.stop()


app = FastAPI(title=settings.APP_NAME, version="0.1.0", lifespan=lifespan)

app.include_router(market_router)
app.include_router(listing_router)
app.include_router(admin_router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}

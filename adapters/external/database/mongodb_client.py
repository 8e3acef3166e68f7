from __future__ import annotations

from datetime import datetime, timezone
from typing import Tuple

from motor.motor_asyncio import AsyncIOMotorClient

from config.settings import settings


def get_mongo_client() -> AsyncIOMotorClient:
    """
    Build the shared Motor client.

    The pool is shared by the sync pipeline (writes) and the HTTP query layer (reads).
    tz_aware keeps datetimes read back from Mongo in UTC.
    """
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        tz_aware=True,
        tzinfo=timezone.utc,
        serverSelectionTimeoutMS=10_000,
    )


def write_stamps() -> Tuple[int, str]:
    """
    Bookkeeping timestamps for a write: (epoch ms, ISO-8601 with Z suffix).
    """
    now = datetime.now(tz=timezone.utc)
    return int(now.timestamp() * 1000), now.isoformat().replace("+00:00", "Z")

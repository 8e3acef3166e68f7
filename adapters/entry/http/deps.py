from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from adapters.external.database.listed_token_repository_mongodb import ListedTokenRepositoryMongoDB
from adapters.external.database.pool_repository_mongodb import PoolRepositoryMongoDB
from adapters.external.database.protocol_stat_repository_mongodb import ProtocolStatRepositoryMongoDB
from adapters.external.database.token_price_repository_mongodb import TokenPriceRepositoryMongoDB
from adapters.external.database.token_repository_mongodb import TokenRepositoryMongoDB
from adapters.external.database.token_snapshot_repository_mongodb import TokenSnapshotRepositoryMongoDB
from core.repositories.listed_token_repository import ListedTokenRepository
from core.repositories.pool_repository import PoolRepository
from core.repositories.protocol_stat_repository import ProtocolStatRepository
from core.repositories.token_price_repository import TokenPriceRepository
from core.repositories.token_repository import TokenRepository
from core.repositories.token_snapshot_repository import TokenSnapshotRepository
from core.usecases.snapshot_listing_use_case import SnapshotListingUseCase


def get_db(request: Request) -> AsyncIOMotorDatabase:
    """
    Database handle published by the lifespan on app.state.
    """
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="database not ready")
    return db


def get_token_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> TokenRepository:
    return TokenRepositoryMongoDB(db)


def get_token_price_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> TokenPriceRepository:
    return TokenPriceRepositoryMongoDB(db)


def get_pool_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> PoolRepository:
    return PoolRepositoryMongoDB(db)


def get_protocol_stat_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ProtocolStatRepository:
    return ProtocolStatRepositoryMongoDB(db)


def get_listed_token_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> ListedTokenRepository:
    return ListedTokenRepositoryMongoDB(db)


def get_token_snapshot_repo(db: AsyncIOMotorDatabase = Depends(get_db)) -> TokenSnapshotRepository:
    return TokenSnapshotRepositoryMongoDB(db)


def get_supervisor(request: Request) -> Any:
    supervisor = getattr(request.app.state, "supervisor", None)
    if supervisor is None:
        raise HTTPException(status_code=503, detail="sync supervisor not ready")
    return supervisor


def get_listing_use_case(supervisor: Any = Depends(get_supervisor)) -> SnapshotListingUseCase:
    uc = supervisor.listing_use_case
    if uc is None:
        raise HTTPException(status_code=503, detail="listing sync not ready")
    return uc

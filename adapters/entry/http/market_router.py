from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.repositories.pool_repository import PoolRepository
from core.repositories.protocol_stat_repository import ProtocolStatRepository
from core.repositories.token_price_repository import TokenPriceRepository
from core.repositories.token_repository import TokenRepository
from core.services.query_sort_service import QuerySortService

from .deps import get_pool_repo, get_protocol_stat_repo, get_token_price_repo, get_token_repo
from .dtos.market_dtos import (
    DailyPriceOutDTO,
    DailyVolumeOutDTO,
    PoolOutDTO,
    ProtocolStatOutDTO,
    TokenOutDTO,
    TokenPriceLatestOutDTO,
    TokenPriceOutDTO,
)

router = APIRouter(prefix="/api/zealous", tags=["zealous"])


def _addr(value: str) -> str:
    return (value or "").strip().lower()


@router.get("/protocol/stats", response_model=ProtocolStatOutDTO)
async def get_protocol_stats(
    repo: ProtocolStatRepository = Depends(get_protocol_stat_repo),
) -> ProtocolStatOutDTO:
    """
    Latest protocol-wide totals.
    """
    stat = await repo.get_latest()
    if stat is None:
        raise HTTPException(status_code=404, detail="protocol stats not found")
    return ProtocolStatOutDTO.model_validate(stat.model_dump())


@router.get("/historical/volume", response_model=List[ProtocolStatOutDTO])
async def list_protocol_history(
    repo: ProtocolStatRepository = Depends(get_protocol_stat_repo),
) -> List[ProtocolStatOutDTO]:
    stats = await repo.list_all()
    return [ProtocolStatOutDTO.model_validate(s.model_dump()) for s in stats]


@router.get("/historical/volume/daily", response_model=List[DailyVolumeOutDTO])
async def list_daily_volume(
    repo: ProtocolStatRepository = Depends(get_protocol_stat_repo),
) -> List[DailyVolumeOutDTO]:
    """
    Traded volume per UTC day, derived from the cumulative protocol volume.
    """
    rows = await repo.daily_volume()
    return [DailyVolumeOutDTO.model_validate(r) for r in rows]


@router.get("/tokens", response_model=List[TokenOutDTO])
async def list_tokens(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: TokenRepository = Depends(get_token_repo),
) -> List[TokenOutDTO]:
    """
    Tracked tokens ordered by rank (unranked last).
    """
    tokens = await repo.list_ranked(skip=int(skip), limit=int(limit))
    return [TokenOutDTO.model_validate(t.model_dump()) for t in tokens]


@router.get("/tokens/{address}/price", response_model=List[TokenPriceOutDTO])
async def list_token_prices(
    address: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(500, ge=1, le=5000),
    repo: TokenPriceRepository = Depends(get_token_price_repo),
) -> List[TokenPriceOutDTO]:
    prices = await repo.list_history(_addr(address), skip=int(skip), limit=int(limit))
    return [TokenPriceOutDTO.model_validate(p.model_dump()) for p in prices]


@router.get("/tokens/{address}/price/daily", response_model=List[DailyPriceOutDTO])
async def list_token_daily_prices(
    address: str,
    repo: TokenPriceRepository = Depends(get_token_price_repo),
) -> List[DailyPriceOutDTO]:
    rows = await repo.daily_summary(_addr(address))
    return [DailyPriceOutDTO.model_validate(r) for r in rows]


@router.get("/tokens/{address}/current", response_model=TokenPriceLatestOutDTO)
async def get_token_current_price(
    address: str,
    repo: TokenPriceRepository = Depends(get_token_price_repo),
) -> TokenPriceLatestOutDTO:
    latest = await repo.get_latest(_addr(address))
    if latest is None:
        raise HTTPException(status_code=404, detail="token price not found")
    return TokenPriceLatestOutDTO.model_validate(latest.model_dump())


@router.get("/pools", response_model=List[PoolOutDTO])
async def list_pool_history(
    address: Optional[str] = Query(None, description="Filter by pool address"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=5000),
    repo: PoolRepository = Depends(get_pool_repo),
) -> List[PoolOutDTO]:
    """
    Pool history rows, newest first.
    """
    pools = await repo.list_history(address=_addr(address) if address else None, skip=int(skip), limit=int(limit))
    return [PoolOutDTO.model_validate(p.model_dump()) for p in pools]


@router.get("/pools/latest", response_model=List[PoolOutDTO])
async def list_latest_pools(
    sort_field: Optional[str] = Query(None, description="tvl | volume_usd | fees_usd | apr | updated_at"),
    order: Optional[str] = Query(None, description="asc | desc"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: PoolRepository = Depends(get_pool_repo),
) -> List[PoolOutDTO]:
    """
    Latest pool projection. Unknown sort fields fall back to tvl, unknown orders to desc.
    """
    field, descending = QuerySortService.resolve_pool_sort(sort_field, order)
    pools = await repo.list_latest(sort_field=field, descending=descending, skip=int(skip), limit=int(limit))
    return [PoolOutDTO.model_validate(p.model_dump()) for p in pools]


@router.get("/pools/{address}/latest", response_model=PoolOutDTO)
async def get_latest_pool(
    address: str,
    dex: Optional[str] = Query(None),
    repo: PoolRepository = Depends(get_pool_repo),
) -> PoolOutDTO:
    pool = await repo.get_latest(_addr(address), dex=(dex or "").strip().lower() or None)
    if pool is None:
        raise HTTPException(status_code=404, detail="pool not found")
    return PoolOutDTO.model_validate(pool.model_dump())

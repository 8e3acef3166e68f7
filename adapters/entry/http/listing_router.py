from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.repositories.listed_token_repository import ListedTokenRepository
from core.repositories.token_snapshot_repository import TokenSnapshotRepository
from core.usecases.snapshot_listing_use_case import SnapshotListingUseCase

from .deps import get_listed_token_repo, get_listing_use_case, get_token_snapshot_repo
from .dtos.listing_dtos import ListedTokenOutDTO, TokenHistoryOutDTO, TokenSnapshotOutDTO

router = APIRouter(prefix="/api/lfg", tags=["lfg"])


@router.get("/tokens", response_model=List[ListedTokenOutDTO])
async def list_listed_tokens(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    repo: ListedTokenRepository = Depends(get_listed_token_repo),
) -> List[ListedTokenOutDTO]:
    """
    Latest state of listed tokens, highest market cap first.
    """
    tokens = await repo.list_by_market_cap(skip=int(skip), limit=int(limit))
    return [ListedTokenOutDTO.model_validate(t.model_dump()) for t in tokens]


async def _history(
    repo: TokenSnapshotRepository,
    address: str,
    *,
    start: Optional[datetime],
    end: Optional[datetime],
    limit: int,
    order: str,
) -> TokenHistoryOutDTO:
    token_address = (address or "").strip().lower()
    descending = (order or "").strip().lower() == "desc"

    items = await repo.list_history(token_address, start=start, end=end, descending=descending, limit=int(limit))
    return TokenHistoryOutDTO(
        token_address=token_address,
        count=len(items),
        items=[TokenSnapshotOutDTO.model_validate(s.model_dump()) for s in items],
        meta={
            "from": start.isoformat() if start else None,
            "to": end.isoformat() if end else None,
            "limit": int(limit),
            "order": "desc" if descending else "asc",
        },
    )


@router.get("/history", response_model=TokenHistoryOutDTO)
async def get_token_history_by_query(
    token_address: str = Query(..., alias="tokenAddress", min_length=1),
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    limit: int = Query(500, ge=1, le=5000),
    order: str = Query("asc", description="asc | desc"),
    repo: TokenSnapshotRepository = Depends(get_token_snapshot_repo),
) -> TokenHistoryOutDTO:
    """
    Same series as /{address}/history, with the token passed as ?tokenAddress=.
    """
    return await _history(repo, token_address, start=start, end=end, limit=limit, order=order)


@router.get("/{address}/history", response_model=TokenHistoryOutDTO)
async def get_token_history(
    address: str,
    start: Optional[datetime] = Query(None, alias="from", description="Inclusive lower bound (ISO-8601 or epoch)"),
    end: Optional[datetime] = Query(None, alias="to", description="Inclusive upper bound (ISO-8601 or epoch)"),
    limit: int = Query(500, ge=1, le=5000),
    order: str = Query("asc", description="asc | desc"),
    repo: TokenSnapshotRepository = Depends(get_token_snapshot_repo),
) -> TokenHistoryOutDTO:
    """
    Bucketed time series of one token.
    """
    return await _history(repo, address, start=start, end=end, limit=limit, order=order)


@router.post("/{address}/snapshot", response_model=TokenSnapshotOutDTO)
async def snapshot_token(
    address: str,
    uc: SnapshotListingUseCase = Depends(get_listing_use_case),
) -> TokenSnapshotOutDTO:
    """
    Snapshot one token now, outside the scheduled cycle.
    """
    snapshot = await uc.snapshot_one((address or "").strip().lower())
    if snapshot is None:
        raise HTTPException(status_code=404, detail="token not found on the scanned listing pages")
    return TokenSnapshotOutDTO.model_validate(snapshot.model_dump())

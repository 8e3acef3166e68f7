from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from .deps import get_supervisor
from .dtos.sync_dtos import SyncRunOutDTO, SyncStatusOutDTO

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/sync/status", response_model=SyncStatusOutDTO)
async def get_sync_status(supervisor: Any = Depends(get_supervisor)) -> SyncStatusOutDTO:
    """
    Scheduler states and the last result per source.
    """
    return SyncStatusOutDTO.model_validate(supervisor.status())


@router.post("/sync/run", response_model=SyncRunOutDTO)
async def run_sync_now(supervisor: Any = Depends(get_supervisor)) -> SyncRunOutDTO:
    """
    Run one cycle on every scheduler and wait for it.

    A scheduler whose previous cycle is still running reports False
    instead of starting a second, overlapping cycle.
    """
    started = await supervisor.trigger_now()
    return SyncRunOutDTO(started=started)

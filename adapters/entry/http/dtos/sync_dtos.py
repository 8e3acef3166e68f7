from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SyncResultOutDTO(BaseModel):
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    filtered: int = 0


class SchedulerStatusOutDTO(BaseModel):
    """
    State of one single-flight scheduler.
    """
    name: str
    state: str = Field(..., description="idle | running")
    interval_s: float
    timer_running: bool
    cycles_started: int
    cycles_failed: int
    ticks_suppressed: int
    last_started_at: Optional[str] = None
    last_finished_at: Optional[str] = None


class SyncStatusOutDTO(BaseModel):
    sync_enabled: bool
    schedulers: List[SchedulerStatusOutDTO] = Field(default_factory=list)
    last_results: Dict[str, SyncResultOutDTO] = Field(default_factory=dict)
    last_run_at: Dict[str, str] = Field(default_factory=dict)


class SyncRunOutDTO(BaseModel):
    """
    Result of a manual trigger: scheduler name -> whether a cycle ran.
    False means a cycle was already in flight and the trigger was a no-op.
    """
    started: Dict[str, bool] = Field(default_factory=dict)

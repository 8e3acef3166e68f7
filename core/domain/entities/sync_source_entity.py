from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class SyncSourceEntity(BaseModel):
    """
    Represents one upstream source driven by the sync scheduler.

    Example:
      - kind="zealous", name="zealous", interval_s=60
      - kind="lfg_top", name="lfg_top100", interval_s=60, config={"pages": 8, "cap": 100}
    """

    name: str
    kind: str  # "zealous" | "lfg_top"
    enabled: bool = True
    interval_s: float = 60.0

    # Source-specific configuration
    config: Dict[str, Any] = Field(default_factory=dict)


class SyncResult(BaseModel):
    """
    Counters reported by one sync cycle of one source.

    - processed: records that passed validation and policy and were handed to persistence
    - skipped: malformed records
    - errors: failed writes or failed stages
    - filtered: well-formed records dropped by tracking policy
    """

    processed: int = 0
    skipped: int = 0
    errors: int = 0
    filtered: int = 0

    def merge(self, other: "SyncResult") -> "SyncResult":
        return SyncResult(
            processed=self.processed + other.processed,
            skipped=self.skipped + other.skipped,
            errors=self.errors + other.errors,
            filtered=self.filtered + other.filtered,
        )

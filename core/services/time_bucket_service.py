from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class TimeBucketService:
    """
    Truncates timestamps to fixed-width UTC buckets.

    Rules:
    - Bucket start = floor(epoch_ms / width_ms) * width_ms
    - Naive datetimes are treated as UTC
    - Default width is one minute
    """

    DEFAULT_WIDTH_S = 60

    @staticmethod
    def floor(ts: datetime, width_s: int = DEFAULT_WIDTH_S) -> datetime:
        width_ms = int(width_s) * 1000
        if width_ms <= 0:
            raise ValueError(f"bucket width must be positive, got {width_s!r}")

        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)

        # integer arithmetic: float timestamps can land 1ms short of a boundary
        epoch_ms = (ts - EPOCH) // timedelta(milliseconds=1)
        bucket_ms = (epoch_ms // width_ms) * width_ms
        return EPOCH + timedelta(milliseconds=bucket_ms)

    @staticmethod
    def now_bucket(width_s: int = DEFAULT_WIDTH_S) -> datetime:
        return TimeBucketService.floor(datetime.now(tz=timezone.utc), width_s)

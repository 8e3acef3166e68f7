from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from core.domain.entities.listed_token_entity import ListedTokenEntity
from core.domain.entities.pool_entity import PoolEntity, PoolTokenRef
from core.domain.entities.protocol_stat_entity import ProtocolStatEntity
from core.domain.entities.token_entity import UNRANKED, TokenEntity
from core.domain.entities.token_snapshot_entity import WINDOWS, TokenSnapshotEntity

TOKEN_KEYS = frozenset({"address", "decimals", "name", "symbol", "price", "rank", "logoURI", "verified"})

POOL_KEYS = frozenset({
    "address", "token0", "token1",
    "token0Volume", "token1Volume", "token0Fees", "token1Fees",
    "token0Reserves", "token1Reserves",
    "tvl", "volumeUSD", "feesUSD", "apr",
    "hasUSDValues", "hasActiveFarm", "farmApr",
    "regularFeeRate", "discountedFeeRate", "updatedAt",
})

LISTED_TOKEN_KEYS = frozenset({
    "tokenAddress", "deployerAddress", "ticker", "name", "description", "totalSupply",
    "image", "colorHex", "devLock", "isHypedLaunch", "bondingCurve", "state", "decimals",
    "version", "isNSFW", "txHash", "socials", "price", "marketCap", "volume", "priceChange",
    "updatedAt",
})

# 10**77 already exceeds uint256
MAX_DECIMALS = 77


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerce an optional upstream number. None, empty or unparseable -> default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return out if math.isfinite(out) else default


def to_opt_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return out if math.isfinite(out) else None


def to_int(value: Any) -> Optional[int]:
    """
    Strict integer coercion: ints, integral floats and integer strings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, (int, float)):
        return bool(value)
    return False


def required_str(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def normalize_address(value: Any) -> Optional[str]:
    """
    Identity normalization: addresses are trimmed and lowercased.
    """
    value = required_str(value)
    return value.lower() if value else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Accept ISO-8601 strings, epoch seconds/milliseconds, or datetimes. Always returns UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            seconds = value / 1000 if value > 1e11 else value
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def scale_fixed_point(value: Any, decimals: int) -> float:
    """
    Convert a fixed-point integer amount (e.g. token reserves) into a decimal amount.

    Uses Decimal so 18-decimal uint256 values keep their precision until the final float.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return 0.0
    if not amount.is_finite():
        return 0.0
    decimals = min(max(int(decimals), 0), MAX_DECIMALS)
    out = float(amount / (Decimal(10) ** decimals))
    return out if math.isfinite(out) else 0.0


def collect_extras(raw: Dict[str, Any], known: Iterable[str]) -> Dict[str, Any]:
    """
    Capture upstream fields we do not model, so new upstream fields are kept.
    """
    known = set(known)
    return {k: v for k, v in raw.items() if k not in known and not str(k).startswith("$")}


class RecordNormalizerService:
    """
    Validates and coerces raw upstream records into typed entities.

    Behavior:
      - Required fields missing or of the wrong shape -> returns None and logs the payload.
        A bad record never raises, so one record cannot abort a batch.
      - Optional numbers default to 0, optional booleans to False.
      - Identity fields (addresses) are lowercased.
    """

    def __init__(self, *, dex: str = "zealous", logger: logging.Logger | None = None) -> None:
        self._dex = str(dex).strip().lower()
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def _skip(self, kind: str, reason: str, raw: Any) -> None:
        self._logger.warning("Skipping %s (%s): %s", kind, reason, raw)
        return None

    def token(self, raw: Any) -> Optional[TokenEntity]:
        if not isinstance(raw, dict):
            return self._skip("token", "not an object", raw)

        address = normalize_address(raw.get("address"))
        decimals = to_int(raw.get("decimals"))
        name = required_str(raw.get("name"))
        symbol = required_str(raw.get("symbol"))

        if not address or decimals is None or not name or not symbol:
            return self._skip("token", "missing required fields", raw)

        rank = to_int(raw.get("rank"))
        logo = raw.get("logoURI")

        try:
            return TokenEntity(
                address=address,
                decimals=decimals,
                name=name,
                symbol=symbol,
                logo_uri=logo if isinstance(logo, str) else "",
                verified=raw.get("verified") is True,
                rank=rank if rank is not None else UNRANKED,
                extras=collect_extras(raw, TOKEN_KEYS),
            )
        except (ValidationError, ValueError, TypeError, OverflowError) as exc:
            return self._skip("token", str(exc), raw)

    @staticmethod
    def token_price(raw: Any) -> Optional[float]:
        """
        Price of a raw token record. 0 is a valid price; only null/absent/unparseable is None.
        """
        if not isinstance(raw, dict):
            return None
        return to_opt_float(raw.get("price"))

    def _pool_side(self, raw: Any) -> Optional[PoolTokenRef]:
        if not isinstance(raw, dict):
            return None
        address = normalize_address(raw.get("address"))
        if not address:
            return None
        return PoolTokenRef(
            address=address,
            symbol=optional_str(raw.get("symbol")) or "",
            name=optional_str(raw.get("name")) or "",
            decimals=to_int(raw.get("decimals")) or 0,
        )

    def pool(self, raw: Any, *, observed_at: datetime) -> Optional[PoolEntity]:
        if not isinstance(raw, dict):
            return self._skip("pool", "not an object", raw)

        address = normalize_address(raw.get("address"))
        token0 = self._pool_side(raw.get("token0"))
        token1 = self._pool_side(raw.get("token1"))
        if not address or token0 is None or token1 is None:
            return self._skip("pool", "missing address or token side", raw)

        try:
            return PoolEntity(
                address=address,
                dex=self._dex,
                token0=token0,
                token1=token1,
                token0_volume=to_float(raw.get("token0Volume")),
                token1_volume=to_float(raw.get("token1Volume")),
                token0_fees=to_float(raw.get("token0Fees")),
                token1_fees=to_float(raw.get("token1Fees")),
                token0_reserves=scale_fixed_point(raw.get("token0Reserves"), token0.decimals),
                token1_reserves=scale_fixed_point(raw.get("token1Reserves"), token1.decimals),
                tvl=to_float(raw.get("tvl")),
                volume_usd=to_float(raw.get("volumeUSD")),
                fees_usd=to_float(raw.get("feesUSD")),
                apr=to_float(raw.get("apr")),
                has_usd_values=to_bool(raw.get("hasUSDValues")),
                has_active_farm=to_bool(raw.get("hasActiveFarm")),
                farm_apr=to_float(raw.get("farmApr")),
                regular_fee_rate=to_opt_float(raw.get("regularFeeRate")),
                discounted_fee_rate=to_opt_float(raw.get("discountedFeeRate")),
                remote_updated_at=parse_timestamp(raw.get("updatedAt")) or observed_at,
                extras=collect_extras(raw, POOL_KEYS),
            )
        except (ValidationError, ValueError, TypeError, OverflowError) as exc:
            return self._skip("pool", str(exc), raw)

    def protocol(self, raw: Any, *, observed_at: datetime) -> ProtocolStatEntity:
        """
        Protocol totals have no required fields: absent values default to 0.
        """
        raw = raw if isinstance(raw, dict) else {}
        return ProtocolStatEntity(
            dex=self._dex,
            total_tvl=to_float(raw.get("totalTVL")),
            total_volume_usd=to_float(raw.get("totalVolumeUSD")),
            pool_count=to_int(raw.get("poolCount")) or 0,
            remote_updated_at=parse_timestamp(raw.get("updatedAt")) or observed_at,
        )

    def listed_token(self, raw: Any, *, synced_at: datetime) -> Optional[ListedTokenEntity]:
        if not isinstance(raw, dict):
            return self._skip("listed token", "not an object", raw)

        token_address = normalize_address(raw.get("tokenAddress"))
        if not token_address:
            return self._skip("listed token", "missing tokenAddress", raw)

        volume = raw.get("volume") if isinstance(raw.get("volume"), dict) else {}
        change = raw.get("priceChange") if isinstance(raw.get("priceChange"), dict) else {}
        socials = raw.get("socials") if isinstance(raw.get("socials"), dict) else None

        try:
            return ListedTokenEntity(
                token_address=token_address,
                deployer_address=normalize_address(raw.get("deployerAddress")),
                ticker=optional_str(raw.get("ticker")),
                name=optional_str(raw.get("name")),
                description=optional_str(raw.get("description")),
                image=optional_str(raw.get("image")),
                color_hex=optional_str(raw.get("colorHex")),
                total_supply=to_opt_float(raw.get("totalSupply")),
                decimals=to_int(raw.get("decimals")),
                version=to_int(raw.get("version")),
                dev_lock=optional_str(raw.get("devLock")),
                is_hyped_launch=to_bool(raw.get("isHypedLaunch")),
                bonding_curve=optional_str(raw.get("bondingCurve")),
                state=optional_str(raw.get("state")),
                is_nsfw=to_bool(raw.get("isNSFW")),
                tx_hash=optional_str(raw.get("txHash")),
                socials=socials,
                price=to_float(raw.get("price")),
                market_cap=to_float(raw.get("marketCap")),
                volume={str(k): to_float(v) for k, v in volume.items()},
                price_change={str(k): to_float(v) for k, v in change.items()},
                updated_at_remote=parse_timestamp(raw.get("updatedAt")),
                last_synced_at=synced_at,
                extras=collect_extras(raw, LISTED_TOKEN_KEYS),
            )
        except (ValidationError, ValueError, TypeError, OverflowError) as exc:
            return self._skip("listed token", str(exc), raw)

    def token_snapshot(self, raw: Any, *, snapped_at: datetime) -> Optional[TokenSnapshotEntity]:
        """
        Build the bucketed time-series point for a listing record.

        snapped_at must already be a bucket start (see TimeBucketService).
        """
        if not isinstance(raw, dict):
            return self._skip("token snapshot", "not an object", raw)

        token_address = normalize_address(raw.get("tokenAddress"))
        if not token_address:
            return self._skip("token snapshot", "missing tokenAddress", raw)

        volume = raw.get("volume") if isinstance(raw.get("volume"), dict) else {}
        change = raw.get("priceChange") if isinstance(raw.get("priceChange"), dict) else {}

        windows: Dict[str, float] = {}
        for w in WINDOWS:
            windows[f"volume_{w}"] = to_float(volume.get(w))
            windows[f"change_{w}"] = to_float(change.get(w))

        try:
            return TokenSnapshotEntity(
                token_address=token_address,
                snapped_at=snapped_at,
                price=to_float(raw.get("price")),
                market_cap=to_float(raw.get("marketCap")),
                **windows,
            )
        except (ValidationError, ValueError, TypeError, OverflowError) as exc:
            return self._skip("token snapshot", str(exc), raw)

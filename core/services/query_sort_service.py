from __future__ import annotations

from typing import Dict, Optional, Tuple


class QuerySortService:
    """
    Resolves client-supplied sort parameters against an allow-list.

    Unknown fields fall back to the default field and unknown orders to
    descending, so a bad query string never becomes an error.
    """

    POOL_SORT_FIELDS: Dict[str, str] = {
        "tvl": "tvl",
        "volume_usd": "volume_usd",
        "volumeUSD": "volume_usd",
        "fees_usd": "fees_usd",
        "feesUSD": "fees_usd",
        "apr": "apr",
        "updated_at": "remote_updated_at",
        "updatedAt": "remote_updated_at",
    }
    POOL_DEFAULT_FIELD = "tvl"

    @staticmethod
    def resolve(
        sort_field: Optional[str],
        order: Optional[str],
        *,
        allowed: Dict[str, str],
        default_field: str,
    ) -> Tuple[str, bool]:
        """
        Returns:
            (storage_field, descending)
        """
        field = allowed.get((sort_field or "").strip(), default_field)
        descending = (order or "").strip().lower() != "asc"
        return field, descending

    @classmethod
    def resolve_pool_sort(cls, sort_field: Optional[str], order: Optional[str]) -> Tuple[str, bool]:
        return cls.resolve(
            sort_field,
            order,
            allowed=cls.POOL_SORT_FIELDS,
            default_field=cls.POOL_DEFAULT_FIELD,
        )

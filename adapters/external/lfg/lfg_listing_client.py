from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from adapters.external.http.json_http_client import JsonHttpClient


class ListingPage(BaseModel):
    """
    One page of the LFG token search listing.
    """

    result: List[Any] = Field(default_factory=list)
    has_more: bool = False
    page: int = 1
    limit: int = 0


class LfgListingClient:
    """
    Client for the LFG launchpad token search (paginated listing).

    Request params: sortBy (sort order), view (view mode), page.
    Response:       {"result": [...], "hasMore": bool, "page": int, "limit": int}

    Listing pages are fetched with a single attempt: paging stops at the
    first failure and the caller gets what was collected so far.
    """

    def __init__(
        self,
        *,
        http: JsonHttpClient,
        base_url: str,
        sort_order: str = "Market Cap (High to Low)",
        view_mode: str = "grid",
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._base_url = str(base_url).strip()
        self._sort_order = sort_order
        self._view_mode = view_mode
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_page(self, page: int) -> ListingPage:
        """
        Fetch a single listing page.

        Raises:
            httpx.HTTPError: timeout, connection failure or non-2xx.
            ValueError: body is not a JSON object.
        """
        params: Dict[str, Any] = {
            "sortBy": self._sort_order,
            "view": self._view_mode,
            "page": int(page),
        }
        payload = await self._http.get_json(self._base_url, params=params, retries=1)
        if not isinstance(payload, dict):
            raise ValueError(f"Malformed listing page {page}: {type(payload).__name__}")

        items = payload.get("result")
        return ListingPage(
            result=items if isinstance(items, list) else [],
            has_more=payload.get("hasMore") is True,
            page=int(payload.get("page") or page),
            limit=int(payload.get("limit") or 0),
        )

    async def fetch_up_to(self, max_pages: int, cap: int) -> List[Any]:
        """
        Page through the listing until the cap is reached, the upstream reports
        no more pages, a page fails, or max_pages is exhausted.

        Never raises: a failed page ends paging and the partial list is returned.
        """
        out: List[Any] = []
        if cap <= 0:
            return out

        for p in range(1, int(max_pages) + 1):
            try:
                page = await self.fetch_page(p)
            except Exception as exc:
                self._logger.warning("Listing page %s fetch failed, keeping %s records: %s", p, len(out), exc)
                break

            for item in page.result:
                out.append(item)
                if len(out) >= cap:
                    break

            if len(out) >= cap or not page.has_more:
                break

        return out[:cap]

    async def find_token(self, token_address: str, *, max_pages: int) -> Optional[Dict[str, Any]]:
        """
        Scan listing pages for one token. Failed pages are skipped, not fatal.
        """
        wanted = str(token_address or "").strip().lower()
        if not wanted:
            return None

        for p in range(1, int(max_pages) + 1):
            try:
                page = await self.fetch_page(p)
            except Exception as exc:
                self._logger.warning("Listing page %s fetch failed during lookup of %s: %s", p, wanted, exc)
                continue

            for item in page.result:
                if isinstance(item, dict) and str(item.get("tokenAddress") or "").strip().lower() == wanted:
                    return item

            if not page.has_more:
                break

        return None

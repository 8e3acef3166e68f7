from __future__ import annotations

from typing import Any, Dict, List, Tuple

from adapters.external.http.json_http_client import JsonHttpClient


class ZealousHttpClient:
    """
    Client for the Zealous Swap public API (Kasplex mainnet).

    Endpoints (all non-paginated point lookups, retried by JsonHttpClient):
      - tokens: {"tokens": [...]}
      - pools:  {"protocol": {...}, "pools": {<key>: {...}}}
      - prices: address -> price map
    """

    def __init__(
        self,
        *,
        http: JsonHttpClient,
        tokens_url: str,
        pools_url: str,
        prices_url: str,
    ) -> None:
        self._http = http
        self._tokens_url = str(tokens_url).strip()
        self._pools_url = str(pools_url).strip()
        self._prices_url = str(prices_url).strip()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_tokens(self) -> List[Any]:
        """
        Fetch raw token records.

        Raises:
            ValueError: the payload has no "tokens" list.
        """
        data = await self._http.get_json(self._tokens_url)
        tokens = data.get("tokens") if isinstance(data, dict) else None
        if not isinstance(tokens, list):
            raise ValueError("Malformed response from Zealous tokens API")
        return tokens

    async def fetch_pools(self) -> Tuple[Dict[str, Any], List[Any]]:
        """
        Fetch protocol totals and raw pool records.

        The pools field is an object keyed by pool; a plain list is accepted too.

        Raises:
            ValueError: protocol or pools missing. An empty pools object is valid.
        """
        data = await self._http.get_json(self._pools_url)
        if not isinstance(data, dict) or not isinstance(data.get("protocol"), dict) or "pools" not in data:
            raise ValueError("Malformed response from Zealous pools API")

        pools = data["pools"]
        if isinstance(pools, dict):
            records = list(pools.values())
        elif isinstance(pools, list):
            records = pools
        else:
            raise ValueError("Malformed response from Zealous pools API")
        return data["protocol"], records

    async def fetch_prices(self) -> Dict[str, Any]:
        """
        Fetch the address -> price map, keyed by lowercased address.

        Accepts {"0xabc": 1.2}, {"prices": {...}} and {"0xabc": {"price": 1.2}} shapes;
        values are returned raw for the normalizer to coerce.
        """
        data = await self._http.get_json(self._prices_url)
        if isinstance(data, dict) and isinstance(data.get("prices"), dict):
            data = data["prices"]
        if not isinstance(data, dict):
            raise ValueError("Malformed response from Zealous prices API")

        out: Dict[str, Any] = {}
        for address, value in data.items():
            if isinstance(value, dict):
                value = value.get("price", value.get("priceUSD"))
            out[str(address).strip().lower()] = value
        return out

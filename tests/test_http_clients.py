import httpx
import pytest

from adapters.external.http.json_http_client import JsonHttpClient
from adapters.external.lfg.lfg_listing_client import LfgListingClient
from adapters.external.zealous.zealous_http_client import ZealousHttpClient

LFG_URL = "https://lfg.test/tokens/search"


class SleepRecorder:
    def __init__(self) -> None:
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _json_client(handler, sleep=None, **kwargs) -> JsonHttpClient:
    return JsonHttpClient(transport=httpx.MockTransport(handler), sleep=sleep or SleepRecorder(), **kwargs)


def _listing_handler(pages, fail_pages=(), calls=None):
    """
    pages: {page_number: (items, has_more)}
    """

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        if calls is not None:
            calls.append(dict(request.url.params))
        if page in fail_pages:
            return httpx.Response(500, json={"error": "boom"})
        items, has_more = pages.get(page, ([], False))
        return httpx.Response(200, json={"result": items, "hasMore": has_more, "page": page, "limit": len(items)})

    return handler


def _items(start, count):
    return [{"tokenAddress": f"0x{i:04x}", "price": i} for i in range(start, start + count)]


# ----------------------------------------------------------- JsonHttpClient


@pytest.mark.asyncio
async def test_get_json_retries_with_exponential_backoff():
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ok": True})

    sleep = SleepRecorder()
    client = _json_client(handler, sleep=sleep, max_retries=3, backoff_base_s=0.5)

    assert await client.get_json("https://api.test/x") == {"ok": True}
    assert len(attempts) == 3
    assert sleep.delays == [0.5, 1.0]
    await client.aclose()


@pytest.mark.asyncio
async def test_get_json_raises_last_error_after_retries():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    sleep = SleepRecorder()
    client = _json_client(handler, sleep=sleep, max_retries=3, backoff_base_s=0.5)

    with pytest.raises(httpx.ConnectError):
        await client.get_json("https://api.test/x")
    assert sleep.delays == [0.5, 1.0]
    await client.aclose()


@pytest.mark.asyncio
async def test_get_json_reraises_the_final_attempt_error():
    statuses = iter([503, 404])
    sleep = SleepRecorder()
    client = _json_client(lambda request: httpx.Response(next(statuses)), sleep=sleep, backoff_base_s=0.5)

    with pytest.raises(httpx.HTTPStatusError) as exc_info:
        await client.get_json("https://api.test/x", retries=2)
    assert exc_info.value.response.status_code == 404
    assert sleep.delays == [0.5]
    await client.aclose()


@pytest.mark.asyncio
async def test_get_json_single_attempt_does_not_sleep():
    sleep = SleepRecorder()
    client = _json_client(lambda request: httpx.Response(404), sleep=sleep)

    with pytest.raises(httpx.HTTPStatusError):
        await client.get_json("https://api.test/x", retries=1)
    assert sleep.delays == []
    await client.aclose()


# ---------------------------------------------------------- LfgListingClient


@pytest.mark.asyncio
async def test_fetch_up_to_sends_listing_params():
    calls = []
    http = _json_client(_listing_handler({1: (_items(0, 2), False)}, calls=calls))
    client = LfgListingClient(http=http, base_url=LFG_URL, sort_order="Market Cap (High to Low)", view_mode="grid")

    items = await client.fetch_up_to(8, 100)

    assert len(items) == 2
    assert calls == [{"sortBy": "Market Cap (High to Low)", "view": "grid", "page": "1"}]
    await client.aclose()


@pytest.mark.asyncio
async def test_fetch_up_to_stops_at_cap():
    pages = {p: (_items((p - 1) * 30, 30), True) for p in range(1, 9)}
    calls = []
    client = LfgListingClient(http=_json_client(_listing_handler(pages, calls=calls)), base_url=LFG_URL)

    items = await client.fetch_up_to(8, 100)

    assert len(items) == 100
    assert items[0]["tokenAddress"] == "0x0000"
    assert items[-1]["tokenAddress"] == "0x0063"
    assert len(calls) == 4


@pytest.mark.asyncio
async def test_fetch_up_to_stops_when_no_more_pages():
    pages = {1: (_items(0, 10), True), 2: (_items(10, 5), False), 3: (_items(15, 10), True)}
    calls = []
    client = LfgListingClient(http=_json_client(_listing_handler(pages, calls=calls)), base_url=LFG_URL)

    items = await client.fetch_up_to(8, 100)

    assert len(items) == 15
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_fetch_up_to_keeps_partial_results_on_page_failure():
    pages = {p: (_items((p - 1) * 10, 10), True) for p in range(1, 9)}
    calls = []
    client = LfgListingClient(
        http=_json_client(_listing_handler(pages, fail_pages={3}, calls=calls)),
        base_url=LFG_URL,
    )

    items = await client.fetch_up_to(8, 100)

    assert len(items) == 20
    # page 3 failed: no further pages are requested, and pages are not retried
    assert [c["page"] for c in calls] == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_fetch_up_to_first_page_failure_returns_empty():
    client = LfgListingClient(http=_json_client(_listing_handler({}, fail_pages={1})), base_url=LFG_URL)
    assert await client.fetch_up_to(8, 100) == []


@pytest.mark.asyncio
async def test_find_token_skips_failed_pages():
    pages = {1: (_items(0, 10), True), 3: (_items(20, 10), False)}
    client = LfgListingClient(
        http=_json_client(_listing_handler(pages, fail_pages={2})),
        base_url=LFG_URL,
    )

    found = await client.find_token("0X0016", max_pages=6)
    missing = await client.find_token("0xdead", max_pages=6)

    assert found == {"tokenAddress": "0x0016", "price": 22}
    assert missing is None


# -------------------------------------------------------- ZealousHttpClient


def _zealous_client(routes):
    def handler(request):
        body = routes[request.url.path]
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, json=body)

    return ZealousHttpClient(
        http=_json_client(handler, max_retries=1),
        tokens_url="https://zealous.test/v1/tokens",
        pools_url="https://zealous.test/v1/pools",
        prices_url="https://zealous.test/v1/prices",
    )


@pytest.mark.asyncio
async def test_zealous_fetch_pools_flattens_keyed_object():
    client = _zealous_client({
        "/v1/pools": {"protocol": {"totalTVL": 1}, "pools": {"a": {"address": "0x1"}, "b": {"address": "0x2"}}},
    })
    protocol, pools = await client.fetch_pools()
    assert protocol == {"totalTVL": 1}
    assert [p["address"] for p in pools] == ["0x1", "0x2"]


@pytest.mark.asyncio
async def test_zealous_empty_pools_object_is_valid():
    client = _zealous_client({"/v1/pools": {"protocol": {"totalTVL": 0}, "pools": {}}})
    assert await client.fetch_pools() == ({"totalTVL": 0}, [])


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"protocol": {}}, {"protocol": {}, "pools": None}, {"pools": {}}])
async def test_zealous_pools_payload_without_pools_or_protocol_raises(body):
    client = _zealous_client({"/v1/pools": body})
    with pytest.raises(ValueError):
        await client.fetch_pools()


@pytest.mark.asyncio
async def test_zealous_malformed_tokens_payload_raises():
    client = _zealous_client({"/v1/tokens": {"data": []}})
    with pytest.raises(ValueError):
        await client.fetch_tokens()


@pytest.mark.asyncio
async def test_zealous_prices_are_keyed_by_lowercase_address():
    client = _zealous_client({"/v1/prices": {"prices": {"0xABC": 1.5, "0xDEF": {"price": "2"}}}})
    assert await client.fetch_prices() == {"0xabc": 1.5, "0xdef": "2"}

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from adapters.external.http.json_http_client import JsonHttpClient
from adapters.external.lfg.lfg_listing_client import LfgListingClient
from core.services.dual_write_service import DualWriteService
from core.services.record_normalizer_service import RecordNormalizerService
from core.usecases.snapshot_listing_use_case import SnapshotListingUseCase
from tests.fakes import InMemoryListedTokenRepository, InMemoryTokenSnapshotRepository


class Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _raw(address, price=1.0, market_cap=100.0):
    return {
        "tokenAddress": address,
        "ticker": address[-4:],
        "price": price,
        "marketCap": market_cap,
        "volume": {"1h": 5, "1d": 50},
        "priceChange": {"1h": 1.5},
    }


def _use_case(client, clock, **kwargs):
    tokens = InMemoryListedTokenRepository()
    snapshots = InMemoryTokenSnapshotRepository()
    uc = SnapshotListingUseCase(
        client=client,
        listed_token_repository=tokens,
        token_snapshot_repository=snapshots,
        normalizer=RecordNormalizerService(),
        dual_writer=DualWriteService(),
        clock=clock,
        **kwargs,
    )
    return uc, tokens, snapshots


def _stub_client(items=None, found=None):
    client = MagicMock()
    client.fetch_up_to = AsyncMock(return_value=items or [])
    client.find_token = AsyncMock(return_value=found)
    return client


@pytest.mark.asyncio
async def test_polls_in_the_same_minute_overwrite_one_snapshot():
    clock = Clock(datetime(2024, 5, 1, 12, 0, 5, tzinfo=timezone.utc))
    client = _stub_client(items=[_raw("0xAAA", price=1.0)])
    uc, tokens, snapshots = _use_case(client, clock)

    await uc.execute()
    clock.now = datetime(2024, 5, 1, 12, 0, 55, tzinfo=timezone.utc)
    client.fetch_up_to.return_value = [_raw("0xAAA", price=2.0)]
    await uc.execute()

    bucket = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert list(snapshots.rows) == [("0xaaa", bucket)]
    assert snapshots.rows[("0xaaa", bucket)].price == 2.0
    assert tokens.docs["0xaaa"].price == 2.0


@pytest.mark.asyncio
async def test_polls_in_different_minutes_produce_two_snapshots():
    clock = Clock(datetime(2024, 5, 1, 12, 0, 59, tzinfo=timezone.utc))
    client = _stub_client(items=[_raw("0xAAA")])
    uc, _, snapshots = _use_case(client, clock)

    await uc.execute()
    clock.now = datetime(2024, 5, 1, 12, 1, 0, tzinfo=timezone.utc)
    await uc.execute()

    assert sorted(ts.minute for _, ts in snapshots.rows) == [0, 1]


@pytest.mark.asyncio
async def test_execute_uses_configured_paging():
    client = _stub_client(items=[_raw("0xAAA")])
    uc, _, _ = _use_case(client, Clock(datetime(2024, 5, 1, tzinfo=timezone.utc)), pages_to_scan=3, cap=25)

    await uc.execute()

    client.fetch_up_to.assert_awaited_once_with(3, 25)


@pytest.mark.asyncio
async def test_empty_listing_writes_nothing():
    uc, tokens, snapshots = _use_case(_stub_client(items=[]), Clock(datetime(2024, 5, 1, tzinfo=timezone.utc)))

    result = await uc.execute()

    assert result.processed == 0
    assert tokens.docs == {}
    assert snapshots.rows == {}


@pytest.mark.asyncio
async def test_malformed_and_duplicate_records():
    items = [_raw("0xAAA", price=1.0), {"ticker": "nope"}, _raw("0xaaa", price=3.0), _raw("0xBBB")]
    uc, tokens, snapshots = _use_case(_stub_client(items=items), Clock(datetime(2024, 5, 1, tzinfo=timezone.utc)))

    result = await uc.execute()

    assert result.skipped == 1
    assert result.processed == 3
    assert snapshots.writes == 2
    assert tokens.docs["0xaaa"].price == 3.0


@pytest.mark.asyncio
async def test_two_pages_end_to_end_with_mock_transport():
    pages = {
        1: {"result": [_raw(f"0x{i:04x}") for i in range(0, 3)], "hasMore": True, "page": 1, "limit": 3},
        2: {"result": [_raw(f"0x{i:04x}") for i in range(3, 5)], "hasMore": False, "page": 2, "limit": 3},
    }

    def handler(request):
        return httpx.Response(200, json=pages[int(request.url.params["page"])])

    http = JsonHttpClient(transport=httpx.MockTransport(handler))
    client = LfgListingClient(http=http, base_url="https://lfg.test/tokens/search")
    uc, tokens, snapshots = _use_case(client, Clock(datetime(2024, 5, 1, 12, 0, 42, tzinfo=timezone.utc)))

    result = await uc.execute()
    await client.aclose()

    assert result.processed == 5
    assert result.errors == 0
    assert len(tokens.docs) == 5
    assert {ts for _, ts in snapshots.rows} == {datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)}


@pytest.mark.asyncio
async def test_snapshot_one_found():
    clock = Clock(datetime(2024, 5, 1, 12, 0, 42, tzinfo=timezone.utc))
    client = _stub_client(found=_raw("0xAAA", price=7.0))
    uc, tokens, snapshots = _use_case(client, clock, lookup_pages=6)

    snapshot = await uc.snapshot_one("0xaaa")

    client.find_token.assert_awaited_once_with("0xaaa", max_pages=6)
    assert snapshot.price == 7.0
    assert snapshot.snapped_at == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert "0xaaa" in tokens.docs
    assert len(snapshots.rows) == 1


@pytest.mark.asyncio
async def test_snapshot_one_not_found():
    uc, tokens, snapshots = _use_case(_stub_client(found=None), Clock(datetime(2024, 5, 1, tzinfo=timezone.utc)))

    assert await uc.snapshot_one("0xmissing") is None
    assert tokens.docs == {}
    assert snapshots.rows == {}


@pytest.mark.asyncio
async def test_oversized_number_in_one_record_keeps_the_batch():
    items = [_raw("0xAAA"), {"tokenAddress": "0xBAD", "totalSupply": 10**400}, _raw("0xCCC")]
    uc, tokens, snapshots = _use_case(_stub_client(items=items), Clock(datetime(2024, 5, 1, tzinfo=timezone.utc)))

    result = await uc.execute()

    assert result.processed == 3
    assert result.skipped == 0
    assert sorted(tokens.docs) == ["0xaaa", "0xbad", "0xccc"]
    assert tokens.docs["0xbad"].total_supply is None
    assert snapshots.writes == 3

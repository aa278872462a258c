import asyncio

import pytest

from conftest import PROGRAM_ID, SOL_MINT, TARGET_MINT, USDC_MINT, FakeRpcClient, order_data
from limit_order_fees.config import Settings
from limit_order_fees.decimals import rpc_decimals_lookup
from limit_order_fees.errors import InvalidRequestError, UpstreamFetchError
from limit_order_fees.fetcher import OrderAccountFetcher
from limit_order_fees.forecast import FeeForecastService, build_default_service, validate_request
from limit_order_fees.models import Side
from limit_order_fees.snapshot import SnapshotCache

DECIMALS = {TARGET_MINT: 6, USDC_MINT: 6, SOL_MINT: 9}


def _service(client, cache=None, **settings):
    return FeeForecastService(
        OrderAccountFetcher(client, PROGRAM_ID),
        rpc_decimals_lookup(client),
        snapshot_cache=cache,
        settings=Settings(**settings),
    )


def test_end_to_end_buckets():
    client = FakeRpcClient(
        accounts=[
            # sell 1000 target for 1060 USDC
            ("s1", order_data(TARGET_MINT, USDC_MINT, 1000 * 10**6, 1060 * 10**6)),
            # buy 500 target with 455 USDC, 300 target with 279 USDC
            ("b1", order_data(USDC_MINT, TARGET_MINT, 455 * 10**6, 500 * 10**6)),
            ("b2", order_data(USDC_MINT, TARGET_MINT, 279 * 10**6, 300 * 10**6)),
        ],
        decimals=DECIMALS,
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))

    (sell,) = result.sell_buckets
    assert sell.side is Side.SELL
    assert sell.price_level == pytest.approx(1.05)
    assert sell.fee_potential_usd == pytest.approx(10.0)

    (buy,) = result.buy_buckets
    assert buy.price_level == pytest.approx(0.90)
    assert buy.order_count == 2
    assert buy.total_volume_usd == pytest.approx(800)
    assert buy.fee_potential_usd == pytest.approx(8.0)
    assert result.order_count == 3
    assert result.from_cache is False
    assert result.total_fee_potential_usd == pytest.approx(18.0)


def test_no_orders_is_empty_success():
    client = FakeRpcClient(decimals=DECIMALS)
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 0.5))
    assert result.to_dict() == {"sellBuckets": [], "buyBuckets": []}
    assert client.supply_calls == []


def test_account_in_both_scans_counted_once():
    client = FakeRpcClient(
        accounts=[("self", order_data(TARGET_MINT, TARGET_MINT, 10**6, 2 * 10**6))],
        decimals=DECIMALS,
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))
    assert result.buy_buckets == []
    (sell,) = result.sell_buckets
    assert sell.order_count == 1
    assert sell.price_level == pytest.approx(2.0)


def test_zero_making_amount_excluded():
    client = FakeRpcClient(
        accounts=[
            ("zero", order_data(TARGET_MINT, USDC_MINT, 0, 10**6)),
            ("ok", order_data(TARGET_MINT, USDC_MINT, 10**6, 10**6)),
        ],
        decimals=DECIMALS,
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))
    assert sum(b.order_count for b in result.sell_buckets) == 1
    assert result.skipped_orders == 1


def test_order_priced_beyond_float_range_is_skipped():
    client = FakeRpcClient(
        accounts=[("huge", order_data(TARGET_MINT, USDC_MINT, 1, 2**63))],
        decimals=DECIMALS,
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 1e-290))
    assert result.sell_buckets == []
    assert result.order_count == 0
    assert result.skipped_orders == 1


def test_decimal_lookup_failure_still_buckets_order():
    # SOL decimals unknown to the RPC; default 9 is the true value anyway
    client = FakeRpcClient(
        accounts=[("b", order_data(SOL_MINT, TARGET_MINT, 5 * 10**8, 10**6))],
        decimals={TARGET_MINT: 6},
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 0.5))
    (buy,) = result.buy_buckets
    assert buy.order_count == 1
    assert buy.price_level == pytest.approx(0.5)
    assert buy.total_volume_usd == pytest.approx(0.5)


def test_decimals_resolved_once_per_mint():
    client = FakeRpcClient(
        accounts=[
            (f"s{i}", order_data(TARGET_MINT, USDC_MINT, 10**6, (100 + i) * 10**4))
            for i in range(20)
        ],
        decimals=DECIMALS,
    )
    asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))
    assert sorted(client.supply_calls) == sorted([TARGET_MINT, USDC_MINT])


def test_undecodable_account_skipped():
    client = FakeRpcClient(
        accounts=[
            ("ok", order_data(TARGET_MINT, USDC_MINT, 10**6, 10**6)),
            ("short", order_data(TARGET_MINT, USDC_MINT, 10**6, 10**6, tail=0)[:130]),
        ],
        decimals=DECIMALS,
    )
    result = asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))
    assert result.order_count == 1


@pytest.mark.parametrize(
    "mint,price",
    [
        ("not-a-mint", 1.0),
        ("", 1.0),
        (None, 1.0),
        (TARGET_MINT, 0),
        (TARGET_MINT, -1.5),
        (TARGET_MINT, None),
        (TARGET_MINT, float("nan")),
        (TARGET_MINT, float("inf")),
        (TARGET_MINT, "abc"),
        (TARGET_MINT, True),
    ],
)
def test_invalid_requests_make_no_calls(mint, price):
    client = FakeRpcClient(decimals=DECIMALS)
    with pytest.raises(InvalidRequestError):
        asyncio.run(_service(client).forecast(mint, price))
    assert client.scans == []
    assert client.supply_calls == []


def test_validate_request_accepts_numeric_strings():
    assert validate_request(TARGET_MINT, "0.25") == (TARGET_MINT, 0.25)


def test_upstream_failure_propagates():
    client = FakeRpcClient(fail_scan=True, decimals=DECIMALS)
    with pytest.raises(UpstreamFetchError):
        asyncio.run(_service(client).forecast(TARGET_MINT, 1.0))


def test_cached_snapshot_skips_fetch():
    client = FakeRpcClient(
        accounts=[("s1", order_data(TARGET_MINT, USDC_MINT, 10**6, 2 * 10**6))],
        decimals=DECIMALS,
    )
    service = _service(client, cache=SnapshotCache(ttl=60))

    async def run():
        first = await service.forecast(TARGET_MINT, 1.0)
        second = await service.forecast(TARGET_MINT, 2.0)
        return first, second

    first, second = asyncio.run(run())
    assert len(client.scans) == 2
    assert first.from_cache is False
    assert second.from_cache is True
    # same orders, re-priced against the new current price
    assert second.sell_buckets[0].price_level == pytest.approx(2.0)
    assert second.sell_buckets[0].total_volume_usd == pytest.approx(2.0)


def test_settings_drive_bucket_size_and_fee():
    client = FakeRpcClient(
        accounts=[("s1", order_data(TARGET_MINT, USDC_MINT, 10**6, 1_160_000))],
        decimals=DECIMALS,
    )
    result = asyncio.run(
        _service(client, bucket_size=0.1, fee_rate=0.05).forecast(TARGET_MINT, 1.0)
    )
    (sell,) = result.sell_buckets
    assert sell.price_level == pytest.approx(1.1)
    assert sell.fee_potential_usd == pytest.approx(0.05)


def test_build_default_service_requires_rpc_url():
    with pytest.raises(RuntimeError):
        build_default_service(Settings(rpc_url=""))


def test_build_default_service_with_client():
    client = FakeRpcClient(decimals=DECIMALS)
    service = build_default_service(Settings(cache_ttl=5), client=client)
    assert service.fetcher.client is client
    assert service.snapshot_cache.ttl == 5

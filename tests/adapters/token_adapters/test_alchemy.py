import threading
import time

import pytest

from fakes import FakeHttp, JsonResponse, rpc_error, rpc_result
from wallet_scan.adapters.token_adapters import AlchemyTokenAdapter
from wallet_scan.clients import http as http_module
from wallet_scan.clients.http import HttpClient
from wallet_scan.constants import UNKNOWN_TOKEN_NAME, UNKNOWN_TOKEN_SYMBOL
from wallet_scan.errors import FailureReason
from wallet_scan.models import SourceKind
from wallet_scan.settings import ScanSettings

ADDRESS = "0x277C6A642564A91ff78b008022D65683cEE5CCC5"
USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


@pytest.fixture
def alchemy_source(make_source):
    return make_source(
        "ethereum:alchemy",
        kind=SourceKind.TOKEN_API,
        protocol="alchemy",
        endpoints=("https://eth-mainnet.g.alchemy.com/v2/{api_key}",),
        api_key="test-key",
    )


METADATA = {
    USDC: {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
    WETH: {"symbol": "WETH", "name": "Wrapped Ether", "decimals": 18},
}


def alchemy_handler(token_pages, metadata=METADATA, failing_metadata=()):
    """Serve balance pages keyed by pageKey (None for the first page)."""

    def handler(method, url, payload):
        params = payload["params"]
        if payload["method"] == "alchemy_getTokenBalances":
            page_key = params[2]["pageKey"] if len(params) > 2 else None
            return rpc_result(token_pages[page_key])
        if payload["method"] == "alchemy_getTokenMetadata":
            contract = params[0]
            if contract in failing_metadata:
                return rpc_error(-32000, "metadata unavailable")
            return rpc_result(metadata[contract])
        raise AssertionError(f"unexpected method {payload['method']}")

    return handler


@pytest.mark.asyncio
async def test_fetch_token_balances_with_metadata(alchemy_source, fast_config):
    pages = {
        None: {
            "address": ADDRESS,
            "tokenBalances": [
                {"contractAddress": USDC.lower(), "tokenBalance": hex(2_500_000)},
                {"contractAddress": WETH.lower(), "tokenBalance": "0x0"},
                {"contractAddress": WETH.lower(), "tokenBalance": None, "error": "bad"},
            ],
        }
    }
    http = FakeHttp(alchemy_handler(pages))
    adapter = AlchemyTokenAdapter(alchemy_source, http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    (record,) = outcome.records
    assert record.chain == "ethereum"
    assert record.token == "USDC"
    assert record.name == "USD Coin"
    assert record.contract_address == USDC
    assert record.balance == "2.5"
    # zero and errored entries are not looked up
    assert http.methods() == ["alchemy_getTokenBalances", "alchemy_getTokenMetadata"]


@pytest.mark.asyncio
async def test_metadata_failure_keeps_balance_with_placeholders(
    alchemy_source, fast_config
):
    pages = {
        None: {
            "tokenBalances": [
                {"contractAddress": USDC, "tokenBalance": hex(3 * 10**18)},
                {"contractAddress": WETH, "tokenBalance": hex(10**18)},
            ]
        }
    }
    http = FakeHttp(alchemy_handler(pages, failing_metadata={USDC}))
    adapter = AlchemyTokenAdapter(alchemy_source, http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    usdc, weth = outcome.records
    assert usdc.token == UNKNOWN_TOKEN_SYMBOL
    assert usdc.name == UNKNOWN_TOKEN_NAME
    assert usdc.contract_address == USDC
    assert usdc.balance == "3"
    assert weth.token == "WETH"
    assert weth.balance == "1"


@pytest.mark.asyncio
async def test_follows_page_keys(alchemy_source, fast_config):
    pages = {
        None: {
            "tokenBalances": [{"contractAddress": USDC, "tokenBalance": hex(10**6)}],
            "pageKey": "page-2",
        },
        "page-2": {
            "tokenBalances": [{"contractAddress": WETH, "tokenBalance": hex(10**18)}],
        },
    }
    http = FakeHttp(alchemy_handler(pages))
    adapter = AlchemyTokenAdapter(alchemy_source, http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert [r.token for r in outcome.records] == ["USDC", "WETH"]
    assert http.methods().count("alchemy_getTokenBalances") == 2


@pytest.mark.asyncio
async def test_stops_at_page_limit(alchemy_source):
    config = ScanSettings(request_timeout=0.5, backoff_base=0, alchemy_max_pages=1)
    pages = {
        None: {
            "tokenBalances": [{"contractAddress": USDC, "tokenBalance": hex(10**6)}],
            "pageKey": "page-2",
        },
    }
    http = FakeHttp(alchemy_handler(pages))
    adapter = AlchemyTokenAdapter(alchemy_source, http, config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    assert [r.token for r in outcome.records] == ["USDC"]
    assert http.methods().count("alchemy_getTokenBalances") == 1


@pytest.mark.asyncio
async def test_missing_token_list_is_parse_error(alchemy_source, fast_config):
    http = FakeHttp(lambda method, url, payload: rpc_result({"address": ADDRESS}))
    adapter = AlchemyTokenAdapter(alchemy_source, http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.reason == FailureReason.PARSE_ERROR


@pytest.mark.asyncio
async def test_network_not_enabled_message(alchemy_source, fast_config):
    http = FakeHttp(
        lambda method, url, payload: rpc_error(
            -32600, "ETH_MAINNET is not enabled for this app"
        )
    )
    adapter = AlchemyTokenAdapter(alchemy_source, http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.reason == FailureReason.NOT_ENABLED
    assert len(http.calls) == 1


@pytest.mark.asyncio
async def test_many_tokens_share_request_slots_without_timing_out(
    monkeypatch, alchemy_source
):
    contracts = [f"0x{i:040x}" for i in range(1, 41)]
    lock = threading.Lock()
    active = 0
    peak = 0

    def fake_request(method, url, **kwargs):
        nonlocal active, peak
        payload = kwargs["json"]
        with lock:
            active += 1
            peak = max(peak, active)
        try:
            time.sleep(0.05)
        finally:
            with lock:
                active -= 1
        if payload["method"] == "alchemy_getTokenBalances":
            return JsonResponse(
                200,
                rpc_result(
                    {
                        "tokenBalances": [
                            {"contractAddress": c, "tokenBalance": "0x1"}
                            for c in contracts
                        ]
                    }
                ),
            )
        return JsonResponse(
            200, rpc_result({"symbol": "TKN", "name": "Token", "decimals": 0})
        )

    monkeypatch.setattr(http_module.requests, "request", fake_request)
    config = ScanSettings(request_timeout=0.2, retry_attempts=1, backoff_base=0)
    http = HttpClient(request_timeout=0.2, max_concurrency=4)

    outcome = await AlchemyTokenAdapter(alchemy_source, http, config).fetch(ADDRESS)

    assert outcome.ok
    assert len(outcome.records) == 40
    assert all(r.token == "TKN" for r in outcome.records)
    assert peak <= 4

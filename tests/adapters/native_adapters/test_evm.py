import asyncio

import pytest

from fakes import FakeHttp, JsonResponse, rpc_error, rpc_result
from wallet_scan.adapters.native_adapters import EvmNativeAdapter
from wallet_scan.clients import http as http_module
from wallet_scan.clients.http import HttpClient
from wallet_scan.constants import NATIVE_TOKEN
from wallet_scan.errors import FailureReason

ADDRESS = "0x277C6A642564A91ff78b008022D65683cEE5CCC5"


@pytest.mark.asyncio
async def test_fetch_native_balance(make_source, fast_config):
    http = FakeHttp(lambda method, url, payload: rpc_result("0x14d1120d7b160000"))
    adapter = EvmNativeAdapter(make_source(), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    assert len(outcome.records) == 1
    record = outcome.records[0]
    assert record.chain == "ethereum"
    assert record.token == NATIVE_TOKEN
    assert record.name == "ETH"
    assert record.contract_address is None
    assert record.balance == "1.5"

    _, _, payload, _ = http.calls[0]
    assert payload["method"] == "eth_getBalance"
    assert payload["params"] == [ADDRESS, "latest"]


@pytest.mark.asyncio
async def test_zero_balance_yields_no_records(make_source, fast_config):
    http = FakeHttp(lambda method, url, payload: rpc_result("0x0"))
    adapter = EvmNativeAdapter(make_source(), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    assert outcome.records == ()


@pytest.mark.asyncio
async def test_rpc_error_is_retried_then_reported(make_source, fast_config):
    http = FakeHttp(lambda method, url, payload: rpc_error(-32000, "header not found"))
    adapter = EvmNativeAdapter(make_source(), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert not outcome.ok
    assert outcome.reason == FailureReason.NETWORK_ERROR
    assert "header not found" in outcome.message
    assert len(http.calls) == fast_config.retry_attempts


@pytest.mark.asyncio
async def test_unparseable_balance_is_parse_error(make_source, fast_config):
    http = FakeHttp(lambda method, url, payload: rpc_result("not-a-number"))
    adapter = EvmNativeAdapter(make_source(), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.reason == FailureReason.PARSE_ERROR


@pytest.mark.asyncio
async def test_slow_endpoint_times_out(make_source, fast_config):
    async def slow(method, url, payload):
        await asyncio.sleep(1)
        return rpc_result("0x1")

    http = FakeHttp(slow)
    adapter = EvmNativeAdapter(make_source(timeout=0.02), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.reason == FailureReason.TIMEOUT
    assert outcome.records == ()


@pytest.mark.asyncio
async def test_source_timeout_reaches_socket(monkeypatch, make_source, fast_config):
    seen = []

    def fake_request(method, url, **kwargs):
        seen.append(kwargs["timeout"])
        return JsonResponse(200, rpc_result("0x1"))

    monkeypatch.setattr(http_module.requests, "request", fake_request)
    http = HttpClient(request_timeout=0.3)
    adapter = EvmNativeAdapter(make_source(timeout=3.0), http, fast_config)

    outcome = await adapter.fetch(ADDRESS)

    assert outcome.ok
    assert seen == [3.0]

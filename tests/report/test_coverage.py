import json

from rich.console import Console

from wallet_scan.constants import NATIVE_TOKEN
from wallet_scan.errors import FailureReason
from wallet_scan.models import BalanceRecord, EndpointFailure, FetchOutcome, SourceKind
from wallet_scan.pipeline.aggregate import AggregationResult
from wallet_scan.report import build_coverage_report, print_result, render_json


def _outcomes(make_source):
    eth = make_source("ethereum:native")
    eth_tokens = make_source(
        "ethereum:alchemy", kind=SourceKind.TOKEN_API, protocol="alchemy"
    )
    pol = make_source("polygon:native", chain_id="polygon")
    return [
        FetchOutcome.success(
            eth,
            [BalanceRecord("ethereum", NATIVE_TOKEN, "1", name="ETH")],
            endpoint="https://eth.drpc.org",
            elapsed=0.1,
        ),
        FetchOutcome.failure(
            eth_tokens,
            FailureReason.NOT_ENABLED,
            "403 Client Error",
            endpoint_failures=(
                EndpointFailure(
                    "https://eth-mainnet.g.alchemy.com/v2/{api_key}",
                    FailureReason.NOT_ENABLED,
                    "403 Client Error",
                ),
            ),
        ),
        FetchOutcome.failure(pol, FailureReason.TIMEOUT, "no response within 7.00s"),
    ]


def test_coverage_report_summarises_outcomes(make_source):
    report = build_coverage_report(_outcomes(make_source))

    assert [entry.source for entry in report.sources] == [
        "ethereum:native",
        "ethereum:alchemy",
        "polygon:native",
    ]
    assert not report.is_complete
    assert [entry.source for entry in report.succeeded] == ["ethereum:native"]
    assert report.unreachable_chains == ["polygon"]
    assert report.by_reason() == {
        FailureReason.NOT_ENABLED: ["ethereum:alchemy"],
        FailureReason.TIMEOUT: ["polygon:native"],
    }
    assert report.status_of("polygon:native").reason == FailureReason.TIMEOUT
    assert report.status_of("ethereum:native").records == 1
    assert report.status_of("missing") is None


def test_empty_report_is_complete():
    report = build_coverage_report([])

    assert report.is_complete
    assert report.to_dict()["sources"] == []


def test_render_json_is_machine_readable(make_source):
    outcomes = _outcomes(make_source)
    result = AggregationResult(
        address="0xabc",
        balances=outcomes[0].records,
        coverage=build_coverage_report(outcomes),
    )

    data = json.loads(render_json(result))

    assert data["address"] == "0xabc"
    assert data["balances"] == [
        {
            "chain": "ethereum",
            "token": NATIVE_TOKEN,
            "name": "ETH",
            "contract_address": None,
            "balance": "1",
        }
    ]
    assert data["coverage"]["complete"] is False
    assert data["coverage"]["failed"] == 2
    alchemy = data["coverage"]["sources"][1]
    assert alchemy["reason"] == "not_enabled"
    assert alchemy["endpoint_failures"][0]["endpoint"].endswith("{api_key}")


def test_print_result_renders_dashboard(make_source):
    outcomes = _outcomes(make_source)
    result = AggregationResult(
        address="0xabc",
        balances=outcomes[0].records,
        coverage=build_coverage_report(outcomes),
    )
    console = Console(record=True, width=160)

    print_result(result, console=console)

    text = console.export_text()
    assert "Balances" in text
    assert "ethereum:native" in text
    assert "not_enabled" in text
    assert "timeout" in text

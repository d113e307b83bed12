import os

import pytest

from wallet_scan.models import SourceDescriptor, SourceKind
from wallet_scan.settings import ScanSettings
from wallet_scan.transport import RetryPolicy


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep the developer's env, .env and config files out of every test."""
    for key in list(os.environ):
        if key.startswith("WALLET_SCAN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("WALLET_SCAN_CONFIG", str(tmp_path / "missing.toml"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fast_config():
    """Settings with a short timeout and no backoff delay."""
    return ScanSettings(request_timeout=0.5, retry_attempts=2, backoff_base=0)


@pytest.fixture
def make_source():
    def _make(
        name: str = "ethereum:native",
        *,
        chain_id: str = "ethereum",
        kind: SourceKind = SourceKind.NATIVE_RPC,
        protocol: str = "evm",
        endpoints: tuple[str, ...] = ("https://rpc.one",),
        api_key: str | None = None,
        decimals: int = 18,
        native_symbol: str | None = "ETH",
        timeout: float | None = None,
        retry: RetryPolicy | None = None,
    ) -> SourceDescriptor:
        return SourceDescriptor(
            name=name,
            chain_id=chain_id,
            kind=kind,
            protocol=protocol,
            endpoints=endpoints,
            api_key=api_key,
            decimals=decimals,
            native_symbol=native_symbol,
            timeout=timeout,
            retry=retry,
        )

    return _make

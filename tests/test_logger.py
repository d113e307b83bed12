import logging

from wallet_scan.logger import (
    TRACE,
    ColoredFormatter,
    SecretMaskFilter,
    resolve_level,
)


def _record(msg, *args, level=logging.WARNING):
    return logging.LogRecord("wallet_scan.test", level, __file__, 1, msg, args, None)


def test_secret_mask_filter_masks_formatted_message():
    record = _record("failed: %s", "https://eth-mainnet.g.alchemy.com/v2/abc123")

    assert SecretMaskFilter(["abc123"]).filter(record)

    assert record.getMessage() == "failed: https://eth-mainnet.g.alchemy.com/v2/***"


def test_secret_mask_filter_leaves_clean_records_alone():
    record = _record("fetched %d record(s)", 3)

    SecretMaskFilter(["abc123", ""]).filter(record)

    assert record.args == (3,)
    assert record.getMessage() == "fetched 3 record(s)"


def test_resolve_level(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert resolve_level(None) == logging.INFO
    assert resolve_level("trace") == TRACE
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("nonsense") == logging.INFO
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    assert resolve_level(None) == logging.ERROR


def test_colored_formatter_restores_level_name():
    record = _record("hello")

    colored = ColoredFormatter(use_color=True).format(record)
    plain = ColoredFormatter(use_color=False).format(record)

    assert "\033[" in colored
    assert "\033[" not in plain
    assert record.levelname == "WARNING"

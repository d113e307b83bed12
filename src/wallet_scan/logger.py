"""Logging setup for wallet-scan: stderr output, TRACE level, key masking."""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"

# Chatty HTTP stacks, quieted unless TRACE is requested
NOISY_LOGGERS = ("urllib3", "requests", "web3")


class ColoredFormatter(logging.Formatter):
    """Colour the level name when writing to a terminal."""

    LEVEL_COLORS = {
        "TRACE": "\033[90m",
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, use_color: bool = True):
        super().__init__(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname)
        if not self.use_color or color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{self.BOLD}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = plain


class SecretMaskFilter(logging.Filter):
    """Replace provider keys in rendered messages.

    Adapters log endpoint templates, but exception text from ``requests``
    can still carry a resolved URL.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self.secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def resolve_level(log_level: str | None) -> int:
    name = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(
    log_level: str | None = None, secrets: Iterable[str] = ()
) -> None:
    """Configure the root logger.

    Logs go to stderr so JSON printed on stdout stays parseable. The level
    comes from ``log_level``, then the LOG_LEVEL environment variable, then
    INFO. Values in ``secrets`` are masked in every emitted message.
    """
    level = resolve_level(log_level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter(use_color=sys.stderr.isatty()))
    handler.addFilter(SecretMaskFilter(secrets))

    logging.basicConfig(level=level, handlers=[handler], force=True)

    noisy_level = TRACE if level <= TRACE else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

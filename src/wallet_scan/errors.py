"""Failure taxonomy shared by transports, adapters and the coverage report."""

from __future__ import annotations

import json
import re
from enum import Enum

import requests

NOT_ENABLED_STATUS_CODES = {401, 403}
NOT_ENABLED_MARKERS = ("not enabled",)
# a bare status code in provider text, not digits inside a block number
NOT_ENABLED_STATUS_PATTERN = re.compile(r"\b403\b")


class FailureReason(str, Enum):
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    NOT_ENABLED = "not_enabled"
    PARSE_ERROR = "parse_error"


class SourceError(Exception):
    """A failure that has already been classified."""

    def __init__(self, reason: FailureReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class ResponseParseError(SourceError):
    """Raised when a provider response does not have the expected shape."""

    def __init__(self, message: str):
        super().__init__(FailureReason.PARSE_ERROR, message)


class JsonRpcError(Exception):
    """Raised when a JSON-RPC response carries an ``error`` member."""

    def __init__(self, code: int | None, message: str):
        super().__init__(f"JSON-RPC error {code}: {message}")
        self.code = code
        self.message = message


def is_not_enabled_error(exc: BaseException) -> bool:
    """Check whether an error means the credential lacks access to a network.

    Providers signal this with an HTTP 401/403 or with an error message such
    as "ETH_MAINNET is not enabled for this app".
    """
    if isinstance(exc, requests.exceptions.HTTPError):
        response = exc.response
        if response is not None and response.status_code in NOT_ENABLED_STATUS_CODES:
            return True
    message = str(exc).lower()
    if any(marker in message for marker in NOT_ENABLED_MARKERS):
        return True
    return NOT_ENABLED_STATUS_PATTERN.search(message) is not None


def classify_error(exc: BaseException) -> FailureReason:
    """Map an arbitrary exception onto a ``FailureReason``."""
    if isinstance(exc, SourceError):
        return exc.reason
    if isinstance(exc, (TimeoutError, requests.exceptions.Timeout)):
        return FailureReason.TIMEOUT
    if is_not_enabled_error(exc):
        return FailureReason.NOT_ENABLED
    if isinstance(exc, (requests.exceptions.JSONDecodeError, json.JSONDecodeError)):
        return FailureReason.PARSE_ERROR
    if isinstance(exc, (requests.exceptions.RequestException, ConnectionError)):
        return FailureReason.NETWORK_ERROR
    if isinstance(exc, JsonRpcError):
        return FailureReason.NETWORK_ERROR
    if isinstance(exc, (ValueError, KeyError, TypeError, IndexError)):
        return FailureReason.PARSE_ERROR
    return FailureReason.NETWORK_ERROR


def is_permanent_failure(exc: BaseException) -> bool:
    """Failures that retrying the same endpoint cannot fix."""
    return classify_error(exc) in {FailureReason.NOT_ENABLED, FailureReason.PARSE_ERROR}

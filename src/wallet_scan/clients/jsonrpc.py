"""Minimal JSON-RPC 2.0 client on top of ``HttpClient``."""

from __future__ import annotations

from typing import Any

from ..errors import JsonRpcError, ResponseParseError
from .http import HttpClient


class JsonRpcClient:
    def __init__(self, http: HttpClient):
        self._http = http

    async def call(
        self,
        url: str,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Invoke ``method`` on the node at ``url`` and return its ``result``.

        ``timeout`` is the socket timeout for this call; the client default
        applies when omitted.

        Raises:
            JsonRpcError: If the node answers with an ``error`` member.
            ResponseParseError: If the body is not a JSON-RPC response.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or [],
        }
        body = await self._http.post_json(
            url,
            payload,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
        if not isinstance(body, dict):
            raise ResponseParseError(f"{method}: response is not a JSON object")

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise JsonRpcError(error.get("code"), str(error.get("message", "")))
            raise JsonRpcError(None, str(error))

        if "result" not in body:
            raise ResponseParseError(f"{method}: response has no result")
        return body["result"]

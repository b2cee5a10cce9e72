#!/usr/bin/env python3
"""JSON-RPC 2.0 client for the external signer.

Posts one request per call with ``httpx`` and surfaces error envelopes as
``JsonRpcError``.
"""

import json
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class JsonRpcError(Exception):
    """Raised when a JSON-RPC call fails.

    Attributes:
        code: JSON-RPC error code (or HTTP status for transport failures)
        message: Error message returned by the endpoint
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        self.message = message
        super().__init__(f"JSON-RPC error: {message}" if code is None else f"JSON-RPC error {code}: {message}")


class JsonRpcHTTPError(JsonRpcError):
    """Raised when the endpoint answers with a non-200 HTTP status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"HTTP error! status: {status_code}", code=status_code)


class JsonRpcClient:
    """Minimal JSON-RPC 2.0 client over HTTP POST.

    Each call is a single request; no batching and no retries.
    """

    JSONRPC_VERSION: str = "2.0"
    REQUEST_ID: int = 1  # one request per call, never batched

    def __init__(self, url: str, timeout: float = 30.0) -> None:
        """Initialize the client.

        Args:
            url: HTTP(S) endpoint of the JSON-RPC server
            timeout: Request timeout in seconds
        """
        if not url:
            raise ValueError("JSON-RPC endpoint URL is required")

        self.url: str = url
        self.timeout: float = timeout

    def _build_request(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {
            "jsonrpc": self.JSONRPC_VERSION,
            "method": method,
            "params": params,
            "id": self.REQUEST_ID,
        }

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke ``method`` and return its ``result`` member verbatim.

        Args:
            method: JSON-RPC method name
            params: Positional parameters

        Returns:
            The ``result`` field of the response, untyped

        Raises:
            JsonRpcHTTPError: If the HTTP status is not 200
            JsonRpcError: If the response carries an ``error`` member
            httpx.HTTPError: On transport failures
        """
        payload: dict[str, Any] = self._build_request(method, params or [])

        async with httpx.AsyncClient() as client:
            logger.debug(f"Posting to {self.url}: {json.dumps(payload)}")
            response: httpx.Response = await client.post(
                self.url,
                json=payload,
                timeout=self.timeout
            )

        if response.status_code != 200:
            raise JsonRpcHTTPError(response.status_code)

        body: Any = response.json()
        if not isinstance(body, dict):
            raise JsonRpcError(f"Invalid JSON-RPC response: {body!r}")

        match body:
            case {"error": {"message": message, **rest}}:
                raise JsonRpcError(message, code=rest.get("code"))
            case {"error": error} if error is not None:
                raise JsonRpcError(str(error))
            case _:
                return body.get("result")

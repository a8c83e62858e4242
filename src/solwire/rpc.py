"""
JSON-RPC transport for Solana-style nodes.

Uses httpx for HTTP.  The transport executes one named call with positional
params and returns the decoded ``result`` member, or raises one of the
categorized RPC errors.  It does not retry.
"""

from __future__ import annotations

import logging
import secrets
from typing import Any, Optional, Protocol

import httpx

from .config import get_rpc_timeout, get_rpc_url
from .errors import GenericRpcError, InvalidIdResponseError, MethodNotFoundError

logger = logging.getLogger(__name__)

METHOD_NOT_FOUND = -32601


class RpcTransport(Protocol):
    def call(self, method: str, params: Optional[list] = None) -> Any:
        ...


class HttpTransport:
    """JSON-RPC 2.0 over HTTP POST, one ``httpx.Client`` per transport."""

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.rpc_url = rpc_url or get_rpc_url()
        self._client = client or httpx.Client(
            timeout=timeout if timeout is not None else get_rpc_timeout()
        )

    def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "getBalance")
            params: Positional RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            MethodNotFoundError: The node does not know ``method``
            InvalidIdResponseError: Response envelope id does not match
            GenericRpcError: Any other node or HTTP failure
        """
        request_id = secrets.randbelow(2**31 - 1) + 1
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params if params is not None else [],
        }
        logger.debug("RPC %s id=%d", method, request_id)

        try:
            response = self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise GenericRpcError(
                f"RPC request returned HTTP {exc.response.status_code}",
                code=exc.response.status_code,
                data=exc.response.text,
            ) from exc
        except httpx.HTTPError as exc:
            raise GenericRpcError(f"RPC request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GenericRpcError("RPC response was not valid JSON", data=response.text) from exc

        return _unwrap(method, request_id, data)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def _unwrap(method: str, request_id: int, data: Any) -> Any:
    if not isinstance(data, dict):
        raise InvalidIdResponseError(f"Malformed JSON-RPC response for {method}")

    if data.get("id") != request_id:
        raise InvalidIdResponseError(
            f"Response id {data.get('id')!r} does not match request id {request_id}"
        )

    error = data.get("error")
    if error is not None:
        code = error.get("code") if isinstance(error, dict) else None
        message = error.get("message", "Unknown RPC error") if isinstance(error, dict) else str(error)
        logger.warning("RPC %s failed: %s (code=%s)", method, message, code)
        if code == METHOD_NOT_FOUND:
            raise MethodNotFoundError(f"API Error: Method {method} not found.")
        raise GenericRpcError(
            f"RPC error: {message}",
            code=code,
            data=error.get("data") if isinstance(error, dict) else None,
        )

    return data.get("result")

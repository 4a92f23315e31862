"""
Gateway client — one PayPay payment-details query per call.

Wraps a provider callable and hides how that provider delivers its result:

    - async callable, or sync callable (run on the thread pool), or a sync
      callable that hands back an awaitable;
    - body returned directly ({resultInfo, data}) or wrapped one level deep
      ({"BODY": {...}} or an object exposing .BODY / .body);
    - body as a mapping or as a JSON string.

Whatever the shape, query_status() returns a plain dict body or raises one
of GatewayUnavailable / GatewayMalformedResponse. It never retries.

A timeout abandons the call, it does not stop it. For an async provider the
coroutine is cancelled; a sync provider keeps running on its pool thread
until its own HTTP stack gives up, so sync SDKs must carry their own socket
timeout or hung calls will occupy the executor (see async_executor).
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Union

from exceptions import GatewayMalformedResponse, GatewayUnavailable
from services.async_executor import run_blocking

logger = logging.getLogger(__name__)

Provider = Callable[[str], Union[Any, Awaitable[Any]]]

_WRAPPER_KEYS = ("BODY", "body")


def _is_async_callable(fn: Any) -> bool:
    if inspect.iscoroutinefunction(fn):
        return True
    call = getattr(fn, "__call__", None)
    return inspect.iscoroutinefunction(call)


def _decode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def extract_body(response: Any) -> dict | None:
    """
    Pull the raw PayPay body out of whatever the provider returned.

    Returns None when nothing body-like can be found.
    """
    response = _decode(response)
    if response is None:
        return None

    if isinstance(response, Mapping):
        for key in _WRAPPER_KEYS:
            if key in response:
                inner = _decode(response[key])
                return dict(inner) if isinstance(inner, Mapping) else None
        if "resultInfo" in response or "data" in response:
            return dict(response)
        return None

    for key in _WRAPPER_KEYS:
        inner = _decode(getattr(response, key, None))
        if isinstance(inner, Mapping):
            return dict(inner)
    return None


class GatewayClient:
    """Normalizes provider delivery into one awaited, bounded query."""

    def __init__(self, provider: Provider, timeout_seconds: float = 5.0):
        self._provider = provider
        self.timeout_seconds = timeout_seconds

    async def _invoke(self, merchant_payment_id: str) -> Any:
        if _is_async_callable(self._provider):
            result = self._provider(merchant_payment_id)
        else:
            result = await run_blocking(self._provider, merchant_payment_id)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def query_status(self, merchant_payment_id: str) -> dict:
        """
        Fetch the raw payment-details body for one merchant payment id.

        Raises:
            ValueError: empty merchant_payment_id
            GatewayUnavailable: transport/protocol error or timeout
            GatewayMalformedResponse: no extractable body
        """
        if not merchant_payment_id:
            raise ValueError("merchant_payment_id must be non-empty")

        try:
            raw = await asyncio.wait_for(
                self._invoke(merchant_payment_id), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.warning(
                f"PayPay query timed out after {self.timeout_seconds}s for {merchant_payment_id}"
            )
            raise GatewayUnavailable("Gateway query timed out", merchant_payment_id) from e
        except Exception as e:
            logger.warning(f"PayPay query failed for {merchant_payment_id}: {e!r}")
            raise GatewayUnavailable(f"Gateway query failed: {e}", merchant_payment_id) from e

        body = extract_body(raw)
        if body is None:
            raise GatewayMalformedResponse("Gateway returned no body", merchant_payment_id)
        return body

"""
PayPay Open Payment API provider.

Issues the "get code payment details" call against PayPay's REST API with
httpx and returns the decoded response body untouched. Interpretation of
that body belongs to the status normalizer; shape tolerance and failure
classification belong to the gateway client.

Requests are signed with PayPay's HMAC scheme:

    Authorization: hmac OPA-Auth:<apiKey>:<macData>:<nonce>:<epoch>:<hash>

where macData is base64(HMAC-SHA256(apiSecret, path, method, nonce, epoch,
contentType, hash joined by newlines)). GET requests have no body, so both
contentType and hash are the literal string "empty".
"""
import base64
import hashlib
import hmac
import logging
import time
import uuid
from typing import Optional
from urllib.parse import quote

import httpx

from config import Settings
from domain.constants import (
    PAYPAY_AUTH_SCHEME,
    PAYPAY_CODE_PAYMENT_PATH,
    PAYPAY_PRODUCTION_BASE_URL,
    PAYPAY_SANDBOX_BASE_URL,
)

logger = logging.getLogger(__name__)

_EMPTY = "empty"


def build_auth_header(
    *,
    api_key: str,
    api_secret: str,
    method: str,
    path: str,
    nonce: str,
    epoch: int,
    body: Optional[bytes] = None,
    content_type: Optional[str] = None,
) -> str:
    """Build the OPA-Auth Authorization header value for one request."""
    if body:
        ctype = content_type or "application/json;charset=UTF-8"
        md5 = hashlib.md5()
        md5.update(ctype.encode("utf-8"))
        md5.update(body)
        payload_hash = base64.b64encode(md5.digest()).decode("ascii")
    else:
        ctype = _EMPTY
        payload_hash = _EMPTY

    mac_input = "\n".join([path, method.upper(), nonce, str(epoch), ctype, payload_hash])
    mac = hmac.new(api_secret.encode("utf-8"), mac_input.encode("utf-8"), hashlib.sha256)
    mac_data = base64.b64encode(mac.digest()).decode("ascii")
    return f"{PAYPAY_AUTH_SCHEME}:{api_key}:{mac_data}:{nonce}:{epoch}:{payload_hash}"


class PayPayProvider:
    """
    Async callable: ``await provider(merchant_payment_id) -> dict | None``.

    Constructed once with explicit credentials; holds no per-request state.
    Transport errors propagate as httpx exceptions. A response without a
    JSON body yields None.
    """

    def __init__(
        self,
        *,
        api_key: str,
        api_secret: str,
        merchant_id: str,
        base_url: str = PAYPAY_SANDBOX_BASE_URL,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_secret = api_secret
        self.merchant_id = merchant_id
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "PayPayProvider":
        base_url = settings.paypay_base_url or (
            PAYPAY_PRODUCTION_BASE_URL if settings.paypay_production_mode else PAYPAY_SANDBOX_BASE_URL
        )
        return cls(
            api_key=settings.paypay_api_key,
            api_secret=settings.paypay_api_secret,
            merchant_id=settings.paypay_merchant_id,
            base_url=base_url,
            timeout_seconds=settings.gateway_timeout_seconds,
            transport=transport,
        )

    def _headers(self, method: str, path: str) -> dict:
        auth = build_auth_header(
            api_key=self.api_key,
            api_secret=self.api_secret,
            method=method,
            path=path,
            nonce=uuid.uuid4().hex[:8],
            epoch=int(time.time()),
        )
        return {
            "Authorization": auth,
            "X-ASSUME-MERCHANT": self.merchant_id,
            "Accept": "application/json",
        }

    async def __call__(self, merchant_payment_id: str) -> Optional[dict]:
        path = PAYPAY_CODE_PAYMENT_PATH.format(
            merchant_payment_id=quote(merchant_payment_id, safe="")
        )
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.get(path, headers=self._headers("GET", path))

        # PayPay reports API-level errors through resultInfo on 4xx/5xx too,
        # so the status code alone is not a failure here.
        try:
            body = response.json()
        except ValueError:
            logger.warning(
                f"PayPay returned a non-JSON body (HTTP {response.status_code}) "
                f"for {merchant_payment_id}"
            )
            return None
        return body

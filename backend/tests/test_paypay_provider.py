"""
Tests for the PayPay REST provider — request signing and response handling.

HTTP traffic goes through httpx.MockTransport; nothing leaves the process.
"""
import base64
import hashlib
import hmac

import httpx
import pytest

from config import Settings
from domain.constants import PAYPAY_PRODUCTION_BASE_URL, PAYPAY_SANDBOX_BASE_URL
from services.paypay_provider import PayPayProvider, build_auth_header


def _provider(handler, **kwargs) -> PayPayProvider:
    return PayPayProvider(
        api_key="key_123",
        api_secret="secret_456",
        merchant_id="merchant_789",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestAuthHeader:

    @pytest.mark.unit
    def test_get_request_signature(self):
        header = build_auth_header(
            api_key="key_123",
            api_secret="secret_456",
            method="get",
            path="/v2/codes/payments/m1",
            nonce="abcd1234",
            epoch=1700000000,
        )
        mac_input = "\n".join(
            ["/v2/codes/payments/m1", "GET", "abcd1234", "1700000000", "empty", "empty"]
        )
        expected_mac = base64.b64encode(
            hmac.new(b"secret_456", mac_input.encode(), hashlib.sha256).digest()
        ).decode()
        assert header == f"hmac OPA-Auth:key_123:{expected_mac}:abcd1234:1700000000:empty"

    @pytest.mark.unit
    def test_body_hash_included_when_body_present(self):
        header = build_auth_header(
            api_key="k",
            api_secret="s",
            method="POST",
            path="/v2/codes",
            nonce="n",
            epoch=1,
            body=b'{"a":1}',
        )
        payload_hash = header.rsplit(":", 1)[1]
        assert payload_hash != "empty"
        md5 = hashlib.md5(b"application/json;charset=UTF-8" + b'{"a":1}').digest()
        assert payload_hash == base64.b64encode(md5).decode()


class TestProviderCall:

    @pytest.mark.asyncio
    async def test_get_payment_details(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"resultInfo": {"code": "SUCCESS"}, "data": {"status": "COMPLETED"}},
            )

        body = await _provider(handler)("order-m1")

        assert body["data"]["status"] == "COMPLETED"
        assert len(seen) == 1
        request = seen[0]
        assert request.method == "GET"
        assert str(request.url) == f"{PAYPAY_SANDBOX_BASE_URL}/v2/codes/payments/order-m1"
        assert request.headers["X-ASSUME-MERCHANT"] == "merchant_789"
        assert request.headers["Authorization"].startswith("hmac OPA-Auth:key_123:")

    @pytest.mark.asyncio
    async def test_error_status_with_json_is_returned(self):
        def handler(request):
            return httpx.Response(400, json={"resultInfo": {"code": "INVALID_PARAMS"}})

        body = await _provider(handler)("m1")
        assert body == {"resultInfo": {"code": "INVALID_PARAMS"}}

    @pytest.mark.asyncio
    async def test_non_json_body_is_none(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad Gateway</html>")

        assert await _provider(handler)("m1") is None

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError):
            await _provider(handler)("m1")

    @pytest.mark.asyncio
    async def test_merchant_payment_id_is_path_escaped(self):
        seen = []

        def handler(request):
            seen.append(request.url.raw_path)
            return httpx.Response(200, json={})

        await _provider(handler)("a/b")
        assert seen == [b"/v2/codes/payments/a%2Fb"]


class TestFromSettings:

    @pytest.mark.unit
    def test_sandbox_by_default(self):
        provider = PayPayProvider.from_settings(Settings(_env_file=None))
        assert provider.base_url == PAYPAY_SANDBOX_BASE_URL

    @pytest.mark.unit
    def test_production_mode(self):
        s = Settings(_env_file=None, paypay_production_mode=True, gateway_timeout_seconds=2.5)
        provider = PayPayProvider.from_settings(s)
        assert provider.base_url == PAYPAY_PRODUCTION_BASE_URL
        assert provider.timeout_seconds == 2.5

    @pytest.mark.unit
    def test_base_url_override(self):
        s = Settings(_env_file=None, paypay_base_url="http://paypay-proxy.local/")
        assert PayPayProvider.from_settings(s).base_url == "http://paypay-proxy.local"

"""
Tests for the PayPay status normalizer.

Tests: result-code handling, data-shape handling, the status allow-list,
and totality over malformed bodies.
"""
import pytest

from domain.enums import GatewayPaymentStatus
from services.status_normalizer import PAYPAY_STATUS_MAP, normalize_payment_status


def _body(data, code="SUCCESS"):
    return {"resultInfo": {"code": code}, "data": data}


class TestResultCode:
    """resultInfo.code other than SUCCESS is a gateway-reported failure."""

    @pytest.mark.unit
    def test_error_code_is_failed_with_result_info(self):
        info = {"code": "DYNAMIC_QR_PAYMENT_NOT_FOUND", "message": "Payment not found"}
        result = normalize_payment_status({"resultInfo": info, "data": None})
        assert result.status is GatewayPaymentStatus.FAILED
        assert result.gateway_error is True
        assert result.result_info == info

    @pytest.mark.unit
    def test_error_code_wins_over_completed_data(self):
        result = normalize_payment_status(_body({"status": "COMPLETED"}, code="UNAUTHORIZED"))
        assert result.status is GatewayPaymentStatus.FAILED
        assert result.gateway_error is True

    @pytest.mark.unit
    def test_missing_result_info_falls_through_to_data(self):
        result = normalize_payment_status({"data": {"status": "COMPLETED"}})
        assert result.status is GatewayPaymentStatus.COMPLETED
        assert result.gateway_error is False


class TestDataShapes:
    """data as a record or as a sequence of records."""

    @pytest.mark.unit
    def test_record(self):
        result = normalize_payment_status(_body({"status": "COMPLETED", "merchantPaymentId": "m1"}))
        assert result.status is GatewayPaymentStatus.COMPLETED
        assert result.raw_status == "COMPLETED"

    @pytest.mark.unit
    def test_sequence_uses_first_element(self):
        result = normalize_payment_status(_body([{"status": "CREATED"}, {"status": "COMPLETED"}]))
        assert result.status is GatewayPaymentStatus.PENDING
        assert result.raw_status == "CREATED"

    @pytest.mark.unit
    def test_lowercase_and_padded_status(self):
        result = normalize_payment_status(_body({"status": "  completed "}))
        assert result.status is GatewayPaymentStatus.COMPLETED
        assert result.raw_status == "completed"


class TestStatusTable:

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("COMPLETED", GatewayPaymentStatus.COMPLETED),
            ("CREATED", GatewayPaymentStatus.PENDING),
            ("AUTHORIZED", GatewayPaymentStatus.PENDING),
            ("REAUTHORIZING", GatewayPaymentStatus.PENDING),
            ("FAILED", GatewayPaymentStatus.FAILED),
            ("CANCELED", GatewayPaymentStatus.FAILED),
            ("EXPIRED", GatewayPaymentStatus.FAILED),
            ("REFUNDED", GatewayPaymentStatus.UNKNOWN),
            ("SOMETHING_NEW", GatewayPaymentStatus.UNKNOWN),
        ],
    )
    def test_mapping(self, raw, expected):
        assert normalize_payment_status(_body({"status": raw})).status is expected

    @pytest.mark.unit
    def test_table_is_closed(self):
        assert set(PAYPAY_STATUS_MAP.values()) <= set(GatewayPaymentStatus)
        assert GatewayPaymentStatus.UNKNOWN not in PAYPAY_STATUS_MAP.values()


class TestTotality:
    """Malformed or partial bodies are UNKNOWN, never an exception."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "body",
        [
            None,
            "COMPLETED",
            42,
            [],
            {},
            {"resultInfo": {"code": "SUCCESS"}},
            _body(None),
            _body([]),
            _body([None]),
            _body(["COMPLETED"]),
            _body("COMPLETED"),
            _body({}),
            _body({"status": None}),
            _body({"status": 1}),
            _body({"status": ""}),
            {"resultInfo": "SUCCESS", "data": {}},
        ],
    )
    def test_unknown(self, body):
        result = normalize_payment_status(body)
        assert result.status is GatewayPaymentStatus.UNKNOWN
        assert result.gateway_error is False

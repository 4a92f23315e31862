"""
Status normalizer — PayPay payment-details body → GatewayPaymentStatus.

Pure mapping with no I/O. Total over every input: anything it cannot
classify becomes UNKNOWN, never an exception.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from domain.constants import PAYPAY_SUCCESS_CODE
from domain.enums import GatewayPaymentStatus

# Closed allow-list of PayPay code-payment states.
PAYPAY_STATUS_MAP: dict[str, GatewayPaymentStatus] = {
    "COMPLETED": GatewayPaymentStatus.COMPLETED,
    "CREATED": GatewayPaymentStatus.PENDING,
    "AUTHORIZED": GatewayPaymentStatus.PENDING,
    "REAUTHORIZING": GatewayPaymentStatus.PENDING,
    "FAILED": GatewayPaymentStatus.FAILED,
    "CANCELED": GatewayPaymentStatus.FAILED,
    "EXPIRED": GatewayPaymentStatus.FAILED,
}


@dataclass(frozen=True)
class NormalizedStatus:
    status: GatewayPaymentStatus
    raw_status: str | None = None
    result_info: Any = None
    gateway_error: bool = False  # PayPay rejected the query via resultInfo.code


def _raw_payment_status(data: Any) -> Any:
    if isinstance(data, Mapping):
        return data.get("status")
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        if data and isinstance(data[0], Mapping):
            return data[0].get("status")
    return None


def normalize_payment_status(body: Any) -> NormalizedStatus:
    if not isinstance(body, Mapping):
        return NormalizedStatus(GatewayPaymentStatus.UNKNOWN)

    result_info = body.get("resultInfo")
    if isinstance(result_info, Mapping):
        code = result_info.get("code")
        if code is not None and code != PAYPAY_SUCCESS_CODE:
            return NormalizedStatus(
                GatewayPaymentStatus.FAILED,
                result_info=dict(result_info),
                gateway_error=True,
            )

    raw = _raw_payment_status(body.get("data"))
    if not isinstance(raw, str) or not raw.strip():
        return NormalizedStatus(GatewayPaymentStatus.UNKNOWN, result_info=result_info)

    raw = raw.strip()
    status = PAYPAY_STATUS_MAP.get(raw.upper(), GatewayPaymentStatus.UNKNOWN)
    return NormalizedStatus(status, raw_status=raw, result_info=result_info)

"""
Domain constants used across services/routers.
"""

# PayPay Open Payment API
PAYPAY_SANDBOX_BASE_URL = "https://stg-api.sandbox.paypay.ne.jp"
PAYPAY_PRODUCTION_BASE_URL = "https://api.paypay.ne.jp"
PAYPAY_CODE_PAYMENT_PATH = "/v2/codes/payments/{merchant_payment_id}"
PAYPAY_AUTH_SCHEME = "hmac OPA-Auth"

# resultInfo.code of every successful PayPay API call
PAYPAY_SUCCESS_CODE = "SUCCESS"

# Status reported when the gateway body carries no payment status
UNKNOWN_GATEWAY_STATUS = "UNKNOWN"

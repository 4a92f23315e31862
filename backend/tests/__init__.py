"""
Pytest suite for the storefront payment backend.

Test categories:
- Unit tests: normalizer, gateway client, PayPay signing, settings
- Service tests: confirmation state machine against in-memory SQLite
- API tests: FastAPI endpoints through httpx ASGITransport
"""

"""
Configuration management for the storefront payment backend.

Loads settings from .env via pydantic-settings.

Notes:
    - PayPay credentials are read once here and handed to the gateway
      client at startup; nothing else reads them.
    - validate_production_settings() enforces strict CORS and a live
      gateway in production.
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/storefront.db"

    # ── PayPay (Open Payment API) ───────────────────────────────────
    paypay_api_key: str = ""
    paypay_api_secret: str = ""
    paypay_merchant_id: str = ""
    paypay_production_mode: bool = False  # sandbox unless explicitly enabled
    paypay_base_url: Optional[str] = None  # override for staging proxies

    # ── Confirmation policy ─────────────────────────────────────────
    gateway_timeout_seconds: float = 5.0
    gateway_attempts: int = 1            # gateway queries per confirmation request
    confirm_retry_after_seconds: int = 3  # polling hint for non-terminal outcomes

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # allow unknown .env keys without crashing
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def missing_gateway_settings(self) -> List[str]:
        """Names of the PayPay credentials that are not set."""
        missing = []
        if not self.paypay_api_key:
            missing.append("PAYPAY_API_KEY")
        if not self.paypay_api_secret:
            missing.append("PAYPAY_API_SECRET")
        if not self.paypay_merchant_id:
            missing.append("PAYPAY_MERCHANT_ID")
        return missing

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Production refuses to boot with open CORS,
        the sandbox gateway, or missing credentials; development only warns.
        """
        missing = self.missing_gateway_settings()
        if self.gateway_attempts < 1:
            raise ValueError("GATEWAY_ATTEMPTS must be at least 1.")
        if self.gateway_timeout_seconds <= 0:
            raise ValueError("GATEWAY_TIMEOUT_SECONDS must be positive.")

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if not self.paypay_production_mode:
                raise ValueError(
                    "PAYPAY_PRODUCTION_MODE must be true in production. "
                    "Sandbox payments would be confirmed as real orders."
                )
            if missing:
                raise ValueError(
                    f"PayPay credentials missing in production: {', '.join(missing)}"
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if missing:
                warnings.append(f"PayPay credentials missing ({', '.join(missing)}); confirmations will fail")
            if self.paypay_production_mode:
                warnings.append("PAYPAY_PRODUCTION_MODE=true outside production")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()

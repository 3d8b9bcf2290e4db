# storefront/config.py
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import ClassVar, Dict
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    # Catalog and order backend; requests go to {API_URL}/api
    API_URL: str = "http://127.0.0.1:4000"
    ORDER_API_TIMEOUT_SECONDS: float = 10.0

    # Durable client store shared by every tab of the storefront
    STORE_DATABASE_URL: str = "sqlite:///./storefront_store.db"
    STORE_KEY_PREFIX: str = "yulishop_"

    # Pricing rules, all amounts in cents
    FREE_SHIPPING_THRESHOLD_CENTS: int = 10000
    SHIPPING_STANDARD_CENTS: int = 490
    SHIPPING_EXPRESS_CENTS: int = 990
    PROMO_CODES: Dict[str, float] = {"WELCOME10": 0.10}

    # Cart and checkout defaults
    DEFAULT_MAX_QUANTITY: int = 99
    DEFAULT_COUNTRY: str = "Germany"

    # Mock card authorization
    PAYMENT_CONFIRM_DELAY_SECONDS: float = 1.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

    @field_validator("PROMO_CODES")
    @classmethod
    def _normalize_promo_codes(cls, value: Dict[str, float]) -> Dict[str, float]:
        # Codes are matched upper-case; a rate above 1 would make totals negative
        normalized = {}
        for code, rate in value.items():
            if not 0 <= rate <= 1:
                raise ValueError(f"Promo rate for {code!r} must be between 0 and 1")
            normalized[code.strip().upper()] = rate
        return normalized

settings = Settings()

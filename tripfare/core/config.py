from decimal import Decimal
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    REDIS_URL: str = "redis://localhost:6379/0"

    DUFFEL_API_TOKEN: str = ""
    DUFFEL_BASE_URL: str = "https://api.duffel.com"
    DUFFEL_VERSION: str = "v2"

    AMADEUS_CLIENT_ID: str = ""
    AMADEUS_CLIENT_SECRET: str = ""
    AMADEUS_BASE_URL: str = "https://test.api.amadeus.com"
    TOKEN_REFRESH_SKEW: int = 60  # seconds

    PROVIDER_TIMEOUT: float = 30.0

    DEFAULT_CURRENCY: str = "EUR"
    MARKUP_PER_PASSENGER: Decimal = Decimal("1.00")
    SERVICE_FEE_PER_PASSENGER: Decimal = Decimal("2.00")

    BAG_MARKUP_AMOUNT: Decimal = Decimal("1.00")
    BAG_MARKUP_RATE: Decimal = Decimal("0.02")
    SEAT_MARKUP_AMOUNT: Decimal = Decimal("2.00")
    SEAT_MARKUP_RATE: Decimal = Decimal("0")
    CFAR_MARKUP_AMOUNT: Decimal = Decimal("0")
    CFAR_MARKUP_RATE: Decimal = Decimal("0.25")

    PAYMENT_LIMIT_GBP: Decimal = Decimal("5000")
    # approximate GBP value of one unit of each currency
    EXCHANGE_RATES_GBP: dict[str, Decimal] = {
        "EUR": Decimal("0.85"),
        "USD": Decimal("0.78"),
        "GBP": Decimal("1"),
    }
    PAYMENT_RETURN_URL: str = "http://localhost:3000/payment/complete"

    RATE_LIMIT: int = 100
    RATE_LIMIT_WINDOW: int = 600  # 10 minutes

    IDEMPOTENCY_TTL: int = 300  # 5 minutes
    PRICE_CACHE_TTL: int = 60   # 60 seconds
    INTENT_TTL: int = 3600      # 1 hour

    WEBHOOK_URL: str = ""
    WEBHOOK_TIMEOUT: int = 10
    WEBHOOK_RETRIES: int = 3

    API_TITLE: str = "Tripfare Checkout Service"
    API_DESCRIPTION: str = "Quotes, ancillaries, payment intents and booking confirmation for flights and stays"
    API_VERSION: str = "1.0.0"

    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()

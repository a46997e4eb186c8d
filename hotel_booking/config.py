from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./hotel_booking.db"

    # Connection pool, ignored for SQLite
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # Share of the original amount a wallet may cover
    WALLET_MAX_USAGE_RATIO: Decimal = Decimal("0.5")

    BOOKING_ID_PREFIX: str = "BKG"
    BOOKING_ID_MAX_ATTEMPTS: int = 5

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env")


settings = Settings()

from decimal import Decimal

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    LOG_LEVEL: str = "INFO"

    # Simulated wallet limits, mirrored from the wallet forms
    MIN_DEPOSIT: Decimal = Decimal("10.00")
    MAX_DEPOSIT: Decimal = Decimal("100000.00")
    MIN_WITHDRAWAL: Decimal = Decimal("100.00")
    MAX_WITHDRAWAL: Decimal = Decimal("50000.00")

    FEATURED_LIMIT: int = 6

    BOOTSTRAP_ADMIN: bool = True
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@gamearena.com"
    ADMIN_PASSWORD: str = "admin123"
    ADMIN_FULL_NAME: str = "Admin User"

    class Config:
        env_file = ".env"

settings = Settings()

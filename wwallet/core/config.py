from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str

    SESSION_MAX_AGE: int = 1800  # 30 minutes
    HTTPS_ONLY: bool = False  # True in production
    BCRYPT_ROUNDS: int = 12
    LOG_LEVEL: str = "INFO"

    # Ledger rules
    FEE_RATE: Decimal = Decimal("0.03")
    MIN_DEPOSIT: Decimal = Decimal("10")
    MIN_WITHDRAW: Decimal = Decimal("20")
    WWID_CHANGE_FEE: Decimal = Decimal("10")

    REGISTRATION_TTL_SECONDS: int = 600
    ADMIN_USERNAMES: list[str] = []
    DEFAULT_API_DOMAIN: str = "https://wwallet.koyeb.app"

    # This configures how the settings are loaded
    model_config = SettingsConfigDict(env_file=".env")

# Create a single instance to be used across the app
settings = Settings()

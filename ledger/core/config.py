from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "pharma-ledger"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/ledger.db"
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8081"

    LOG_LEVEL: str = "INFO"

    # Calendar used to decide whether a due date is in the past
    BUSINESS_TIMEZONE: str = "UTC"

    # Reconciliation
    PAYMENT_MAX_ATTEMPTS: int = 3

    # Create tables on startup instead of running migrations (local development only)
    AUTO_CREATE_TABLES: bool = False


settings = Settings()

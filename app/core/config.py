from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    STORE_PROVIDER: str | None = None  # "mongo" | "memory"; inferred from ENV when unset
    MONGODB_URI: str | None = None
    DATABASE_NAME: str = "recovery_office"
    MONGODB_TIMEOUT_MS: int = 5000

    CURRENCY_SYMBOL: str = "£"

    BOOKING_STORAGE_KEY: str = "recovery_office_booking"
    BOOKING_STORAGE_DIR: str = "./data/storage"
    API_BASE_URL: str = "http://127.0.0.1:8000"
    API_TIMEOUT_SECONDS: float = 15.0

    ERROR_LOOP_THRESHOLD: int = 3
    ERROR_LOOP_WINDOW_SECONDS: float = 1.0
    RELOAD_DELAY_SECONDS: float = 2.0

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()

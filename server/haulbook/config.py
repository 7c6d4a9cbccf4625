from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = Field(default="development", validation_alias="APP_ENV")
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+pysqlite:///./haulbook.db"

    JWT_SECRET: str = "haulbook-dev-secret"
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Which order date governs P&L period inclusion: "delivery" or "invoice".
    DEFAULT_RECOGNITION_BASIS: str = "delivery"
    DEFAULT_TREND_MONTHS: int = 12

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip().rstrip("/") for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()

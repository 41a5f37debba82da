from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./helpdesk.db"
    TEST_DATABASE_URL: str = "sqlite+aiosqlite:///./test.db"

    # Tokens are issued by the auth service; this backend only verifies them
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Reporting calendar is anchored to WIB (UTC+7) regardless of server timezone
    REPORT_UTC_OFFSET_HOURS: int = 7
    REPORT_TIMEZONE_NAME: str = "WIB"
    # Guest-intake categories never show up in aggregate reports
    REPORT_EXCLUDED_CATEGORY_IDS: list[str] = ["guest-password", "guest-sso", "guest-email"]
    REPORT_TIMEOUT_SECONDS: float = 30.0

    CORS_ORIGINS: str = "http://localhost:5173"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _fix_database_url(self):
        """Render provides postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if self.DATABASE_URL.startswith("postgresql://"):
            self.DATABASE_URL = self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1,
            )
        return self


settings = Settings()

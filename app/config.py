from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase settings (auth admin API + Postgres)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_DB_URL: str | None = None
    SUPABASE_HTTP_TIMEOUT_SECONDS: float = 10.0

    # OpenAI settings
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_TEMPERATURE: float = 0.0
    OPENAI_TIMEOUT_SECONDS: float = 30.0
    OPENAI_MAX_RETRIES: int = 3

    # Resend email settings
    RESEND_API_KEY: str | None = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    ACCOUNT_DELETION_FROM_EMAIL: str | None = None
    ACCOUNT_DELETION_APP_NAME: str = "InterviewPilot AI"

    # =================================================================
    # ACCOUNT DELETION
    # =================================================================
    ACCOUNT_DELETION_GRACE_PERIOD_DAYS: int = 30
    ACCOUNT_DELETION_CRON_SECRET: str | None = None
    ACCOUNT_DELETION_PAGE_SIZE: int = 1000
    ACCOUNT_DELETION_SWEEP_INTERVAL_SECONDS: int = 3600

    # Candidate ranking
    RANKING_TOP_N: int = 5

    # =================================================================
    # DATABASE POOL SETTINGS - Simple and configurable
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_SERVICE_ROLE_KEY)

    def database_configured(self) -> bool:
        return bool(self.SUPABASE_DB_URL)

    def email_configured(self) -> bool:
        return bool(self.RESEND_API_KEY and self.ACCOUNT_DELETION_FROM_EMAIL)

    def supabase_auth_url(self) -> str:
        """Base URL of the Supabase Auth (GoTrue) API."""
        base = (self.SUPABASE_URL or "").rstrip("/")
        return f"{base}/auth/v1"

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            config.update({"min_size": 1, "max_size": 4, "timeout": 15.0})

        return config

    def get_account_deletion_config(self) -> dict:
        return {
            "grace_period_days": self.ACCOUNT_DELETION_GRACE_PERIOD_DAYS,
            "page_size": self.ACCOUNT_DELETION_PAGE_SIZE,
            "sweep_interval_seconds": self.ACCOUNT_DELETION_SWEEP_INTERVAL_SECONDS,
            "finalize_configured": bool(self.ACCOUNT_DELETION_CRON_SECRET),
            "email_configured": self.email_configured(),
        }


settings = Settings()

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "av_user"
    postgres_password: str = "changeme"
    postgres_db: str = "ai_visibility"

    # Full SQLAlchemy URL; overrides the postgres_* parts when set (e.g. sqlite+aiosqlite for tests)
    database_url: str = ""

    @property
    def postgres_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (Celery broker + result backend)
    redis_url: str = "redis://localhost:6379/0"

    # Engine response fetcher: "template" (synthetic answers) | "openai" (real API)
    engine_fetcher: str = "template"
    fetch_timeout_seconds: float = 60.0
    poll_concurrency: int = 1  # 1 = strictly sequential fetches
    fetch_max_retries: int = 5  # retries of rate-limited / gateway errors per fetch
    fetch_retry_backoff: float = 1.0  # multiplier on the retry delays; 0 disables waiting

    # Template fetcher
    template_fetcher_delay_seconds: float = 0.5
    template_fetcher_seed: int | None = None

    # OpenAI-compatible fetcher
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4.1-mini"
    engine_models: dict[str, str] = {}  # {"perplexity": "sonar"}, per engine slug overrides

    # Reporting
    overview_window_days: int = 30

    # Celery Beat: hour (UTC) of the daily poll of all brands
    poll_schedule_hour: int = 6

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.engine_fetcher not in ("template", "openai"):
        errors.append(f"ENGINE_FETCHER must be 'template' or 'openai', got {settings.engine_fetcher!r}")

    if settings.engine_fetcher == "openai" and not settings.openai_api_key:
        errors.append("OPENAI_API_KEY must be set when ENGINE_FETCHER=openai")

    if settings.poll_concurrency < 1:
        errors.append("POLL_CONCURRENCY must be at least 1")

    if settings.fetch_timeout_seconds <= 0:
        errors.append("FETCH_TIMEOUT_SECONDS must be positive")

    if settings.fetch_max_retries < 0:
        errors.append("FETCH_MAX_RETRIES must not be negative")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if settings.engine_fetcher == "template":
            errors.append("ENGINE_FETCHER=template produces synthetic answers and is not allowed in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))

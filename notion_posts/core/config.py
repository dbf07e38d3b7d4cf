from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True
    SLACK_WEBHOOK_URL: str | None = None

    # Notion source
    NOTION_PAGE_ID: str = ""
    NOTION_API_BASE_URL: str = "https://www.notion.so/api/v3"
    NOTION_TOKEN_V2: str | None = None
    NOTION_ACTIVE_USER: str | None = None
    NOTION_REQUEST_TIMEOUT_SECONDS: float = 15.0
    NOTION_FETCH_TIMEOUT_SECONDS: float | None = None  # None = no overall deadline

    # Retry / pacing (rate limit safety margin)
    RETRY_MAX_ATTEMPTS: int = 10
    RETRY_INITIAL_DELAY_MS: int = 400
    BATCH_SIZE: int = 5
    BATCH_DELAY_MS: int = 400

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development

    @property
    def has_root_page(self) -> bool:
        return bool(self.NOTION_PAGE_ID.strip())


settings = Settings()

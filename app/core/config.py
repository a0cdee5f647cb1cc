"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here; no scattered magic strings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode (exposes /docs). Must be False in production.
        environment: Deployment environment. "test" skips the MongoDB connection.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        mongodb_url: MongoDB connection URI.
        mongodb_db: Name of the database holding the users collection.
        rate_limit_default: Default rate limit applied to every request.
        cors_origins: Comma-separated allowed origins, or "*" to allow all.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_name: str = "User Service"
    version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db: str = "user_service"

    rate_limit_default: str = "100/10 minutes"
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Return the allowed CORS origins as a list."""
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_test(self) -> bool:
        return self.environment.lower() == "test"


settings = Settings()

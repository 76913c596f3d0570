"""Configuration management using pydantic-settings."""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Webhook export
    webhook_url: str = Field(
        default="https://hook.integrator.boost.space/0w7dejdvm21p78a4lf4wdjkfi8dlvk25",
        description="Automation webhook receiving exported keywords",
    )
    ai_model: str = Field(default="openai", description="AI model selector sent with exports")
    webhook_max_attempts: int = Field(default=3, description="Total delivery attempts per export")
    webhook_base_delay: float = Field(
        default=1.0, description="Base retry delay in seconds (multiplied by attempt number)"
    )
    webhook_timeout: float = Field(default=30.0, description="Webhook request timeout in seconds")

    # Autocomplete suggestions
    suggest_base_url: str = Field(
        default="https://suggestqueries.google.com",
        description="Autocomplete service used for keyword suggestions",
    )
    suggest_timeout: float = Field(default=8.0, description="Suggestion request timeout in seconds")
    suggest_limit: int = Field(default=10, description="Maximum suggestions kept per keyword")
    suggest_concurrency: int | None = Field(
        default=None, description="Optional cap on concurrent suggestion requests"
    )
    suggestions_enabled: bool = Field(
        default=True, description="Fetch suggestions during import"
    )

    # Import
    import_delimiter: str = Field(default=",", description="Field delimiter for imported files")

    # Context defaults for new projects
    default_conversion_rate: float = Field(default=2.0, description="Conversion rate in percent")
    default_average_order_value: float = Field(default=125.0, description="Average order value")
    default_language: str = Field(default="pt-PT", description="Locale for suggestion lookups")

    # Selected project
    current_project_id: str = Field(default="", description="Project used when none is given")

    # Paths
    data_dir: Path = Field(default=Path("./data"), description="Data directory path")
    log_level: str = Field(default="INFO", description="Console log level")

    @property
    def projects_file(self) -> Path:
        """Path to the projects JSON file."""
        return self.data_dir / "projects.json"

    @property
    def logs_dir(self) -> Path:
        """Path to the logs directory."""
        return self.data_dir / "logs"

    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    @property
    def has_current_project(self) -> bool:
        """Check if a project is selected."""
        return bool(self.current_project_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""
Configuration management for the keyword match service.
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Configuration
    api_key: str = Field(default="dev_api_key")

    # Database
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL database URL (if not provided, will be built from parts below)"
    )
    database_host: str = Field(default="localhost", description="Database host")
    database_port: int = Field(default=5432, description="Database port")
    database_name: str = Field(default="vk_keywords", description="Database name")
    database_user: str = Field(default="vk_keywords", description="Database user")
    database_password: str = Field(default="vk_keywords", description="Database password")

    @property
    def database_url_from_parts(self) -> str:
        """Build database URL from parts."""
        return f"postgresql://{self.database_user}:{self.database_password}@{self.database_host}:{self.database_port}/{self.database_name}"

    # Application Settings
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default="logs/app.log")
    environment: str = Field(default="development")

    # Keyword matching
    match_batch_size: int = Field(
        default=1000,
        description="Number of comments/posts loaded per window during match recalculation"
    )

    # Rate limiting
    rate_limit_storage_uri: str = Field(
        default="memory://",
        description="slowapi storage URI (memory:// or redis://host:port/db)"
    )
    recalculate_rate_limit: str = Field(
        default="2/minute",
        description="Rate limit for the full match recalculation endpoint"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def resolved_database_url(self) -> str:
        """Database URL, falling back to the one built from parts."""
        return self.database_url or self.database_url_from_parts

    @model_validator(mode='after')
    def validate_batch_size(self):
        """Validate that the recalculation window is usable."""
        if self.match_batch_size <= 0:
            raise ValueError(
                "MATCH_BATCH_SIZE must be a positive integer. "
                "Set it in your .env file or environment variables."
            )

        return self


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config

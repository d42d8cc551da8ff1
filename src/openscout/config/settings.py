"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (OPENSCOUT_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class SearchSettings(BaseModel):
    """Search behavior configuration."""

    driver: str = Field(
        default="collection", description="Default engine driver: collection, database, meilisearch, null"
    )
    prefix: str = Field(default="", description="Prefix prepended to every index name")
    soft_delete: bool = Field(default=False, description="Keep soft-deleted records in the index")
    per_page: int = Field(default=15, ge=1, description="Default page size for models that do not set one")
    page_name: str = Field(default="page", description="Query-string parameter carrying the page number")

    @field_validator("driver", mode="before")
    @classmethod
    def _normalize_driver(cls, v: str) -> str:
        return str(v).strip().lower()


class MeiliSearchSettings(BaseModel):
    """MeiliSearch connection configuration."""

    host: str = Field(default="http://localhost:7700", description="MeiliSearch instance URL")
    key: str | None = Field(default=None, description="Master key or API key")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the OPENSCOUT_ prefix.
    Nested settings use double underscores: OPENSCOUT_SEARCH__DRIVER=meilisearch

    Example:
        OPENSCOUT_SEARCH__DRIVER=meilisearch
        OPENSCOUT_SEARCH__PREFIX=staging_
        OPENSCOUT_MEILISEARCH__KEY=masterKey
    """

    model_config = {
        "env_prefix": "OPENSCOUT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="OpenScout", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    search: SearchSettings = Field(default_factory=SearchSettings)
    meilisearch: MeiliSearchSettings = Field(default_factory=MeiliSearchSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file take precedence over environment variables.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


# Global settings instance (loaded lazily, replaced by set_settings)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the active settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Override the active settings. ``None`` restores environment loading."""
    global _settings
    _settings = settings

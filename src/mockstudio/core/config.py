"""Configuration management for Mockup Studio.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the MOCKSTUDIO_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (MOCKSTUDIO_* prefix)
2. .env file in the project root
3. Default values defined in MockStudioConfig

Example .env file:
    MOCKSTUDIO_API_KEYS_POOL=key-one,key-two,key-three
    MOCKSTUDIO_MODEL_VARIANTS=["gemini-2.5-flash-image","gemini-3-pro-image-preview"]
    MOCKSTUDIO_CATALOG_URL=https://example.supabase.co
    MOCKSTUDIO_CATALOG_KEY=public-anon-key

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from mockstudio.core.config import config

    print(config.credentials)
    print(config.model_variants)

Credential Sources
------------------
Credentials come from a single comma-separated list (``api_keys_pool``).
Blank entries are discarded and whitespace is trimmed.  When that list is
empty, the legacy single credential (``api_key``) is used instead, if set.

Free-Tier Pacing
----------------
The remote service applies an aggressive per-origin abuse policy, so every
remote call is issued sequentially and two fixed delays are configurable:
- credential_pause_seconds: pause after a credential is found exhausted
- probe_pause_seconds: pause between diagnostics probes

See Also
--------
- MockStudioConfig: Full configuration class documentation
- mockstudio.core.credentials: Credential parsing and ordering
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mockstudio.core.credentials import parse_credentials

DEFAULT_MODEL_VARIANTS = [
    "gemini-2.5-flash-image",
    "gemini-3-pro-image-preview",
]


class MockStudioConfig(BaseSettings):
    """Main configuration for Mockup Studio.

    This class uses Pydantic Settings to manage all application configuration.
    Values are loaded from environment variables with the MOCKSTUDIO_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Credentials:
        api_keys_pool : str
            Comma-separated list of access tokens for the generation service
        api_key : str | None
            Legacy single access token, used only when the pool is empty

    Remote Models:
        model_variants : list[str]
            Model identifiers tried per credential, cheapest first
        probe_model : str
            Low-cost model used by the diagnostics probe
        probe_prompt : str
            Trivial text sent by each diagnostics probe
        request_timeout_ms : int
            HTTP timeout handed to the generation SDK

    Pacing:
        credential_pause_seconds : float
            Delay after a credential is exhausted, before the next one
        probe_pause_seconds : float
            Delay between two diagnostics probes

    Persistence:
        data_dir : Path
            Directory for durable state (created on initialisation)
        preference_db : Path | None
            SQLite file holding the sticky credential (defaults to
            data_dir/preferences.db)

    Scenario Catalog:
        catalog_url : str | None
            Base URL of the hosted table store (None = built-in scenarios only)
        catalog_key : str | None
            Public key sent to the table store
        catalog_table : str
            Table holding scenario records
        catalog_timeout : float
            Catalog request timeout in seconds

    Server:
        server_host : str
            Server bind address
        server_port : int
            Server port (1024-65535)
        log_level : str
            Root log level used by the entry points

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = MockStudioConfig(
        ...     api_keys_pool="key-a, key-b",
        ...     credential_pause_seconds=0.0,
        ... )
        >>> custom_config.credentials
        ['key-a', 'key-b']
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MOCKSTUDIO_",
        case_sensitive=False,
    )

    # Credentials
    api_keys_pool: str = Field(
        default="",
        description="Comma-separated list of access tokens",
    )
    api_key: str | None = Field(
        default=None,
        description="Legacy single access token (used only if the pool is empty)",
    )

    # Remote models
    model_variants: list[str] = Field(
        default_factory=lambda: list(DEFAULT_MODEL_VARIANTS),
        description="Model identifiers tried per credential, fastest first",
        min_length=1,
    )
    probe_model: str = Field(
        default="gemini-2.5-flash-lite",
        description="Low-cost model used by the diagnostics probe",
    )
    probe_prompt: str = Field(
        default="ping",
        description="Text sent by each diagnostics probe",
    )
    request_timeout_ms: int = Field(
        default=120_000,
        description="HTTP timeout for remote calls, in milliseconds",
        ge=1000,
    )

    # Pacing
    credential_pause_seconds: float = Field(
        default=0.5,
        description="Pause after an exhausted credential before trying the next",
        ge=0.0,
    )
    probe_pause_seconds: float = Field(
        default=0.2,
        description="Pause between diagnostics probes",
        ge=0.0,
    )

    # Persistence
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for durable application state",
    )
    preference_db: Path | None = Field(
        default=None,
        description="SQLite file for the sticky credential (default: data_dir/preferences.db)",
    )

    # Scenario catalog
    catalog_url: str | None = Field(
        default=None,
        description="Base URL of the hosted scenario table store",
    )
    catalog_key: str | None = Field(
        default=None,
        description="Public key for the scenario table store",
    )
    catalog_table: str = Field(
        default="templates",
        description="Table holding scenario records",
    )
    catalog_timeout: float = Field(
        default=10.0,
        description="Catalog request timeout in seconds",
        gt=0.0,
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the entry points",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.preference_db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def credentials(self) -> list[str]:
        """Configured credentials in raw configuration order."""
        return parse_credentials(self.api_keys_pool, self.api_key)

    @property
    def preference_db_path(self) -> Path:
        """Resolved location of the preference database."""
        if self.preference_db is not None:
            return self.preference_db
        return self.data_dir / "preferences.db"


# Global configuration instance
# Loads values from environment variables (MOCKSTUDIO_* prefix) and .env file.
config = MockStudioConfig()

"""YAML + env var config loading with pydantic-settings."""

from __future__ import annotations

import os
from pathlib import Path

import structlog
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

logger = structlog.get_logger()

_DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def _config_file_path() -> Path:
    """Resolve the YAML config path, honouring STRICT_CSP_CONFIG_FILE."""
    return Path(os.environ.get("STRICT_CSP_CONFIG_FILE", str(_DEFAULTS_PATH)))


class StrictCspSettings(BaseSettings):
    """Strict CSP configuration loaded from YAML defaults, overridden by env vars."""

    model_config = SettingsConfigDict(
        env_prefix="STRICT_CSP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Policy options
    enable_browser_fallbacks: bool = True
    enable_trusted_types: bool = False
    enable_unsafe_eval: bool = False

    # Rewriting steps run by enable_strict_csp()
    refactor_sourced_scripts: bool = True
    hash_inline_styles: bool = True

    # Read by strict_csp.logging_config.configure_logging()
    log_level: str = "info"
    log_json: bool = True

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=_config_file_path())
        return (init_settings, env_settings, dotenv_settings, yaml_settings)


_settings: StrictCspSettings | None = None


def get_settings() -> StrictCspSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> StrictCspSettings:
    """Load settings from YAML and env vars (env vars override the YAML file)."""
    global _settings
    _settings = StrictCspSettings()
    logger.info(
        "settings_loaded",
        browser_fallbacks=_settings.enable_browser_fallbacks,
        trusted_types=_settings.enable_trusted_types,
        unsafe_eval=_settings.enable_unsafe_eval,
    )
    return _settings

"""Persisted settings: endpoint, credentials, chunking and display theme."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .summarize.providers import ProviderShape

logger = logging.getLogger(__name__)

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"

# Environment fallbacks for an unset stored key
API_KEY_ENV = {
    ProviderShape.OPENAI: "OPENAI_API_KEY",
    ProviderShape.ANTHROPIC: "ANTHROPIC_API_KEY",
}


class ConfigError(Exception):
    """Raised when settings are missing or invalid."""


class MissingApiKey(ConfigError):
    """Raised when no API key is configured."""


def is_valid_hex(value: str) -> bool:
    """Check for a #RRGGBB color."""
    return bool(HEX_COLOR_PATTERN.fullmatch(value))


class DisplayTheme(BaseModel):
    """Fonts and colors for the rendered summary."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    font: str = "Arial"
    font_size: int = Field(default=14, ge=6, le=72, alias="fontSize")
    text_color: str = Field(default="#e6db74", alias="textColor")
    background_color: str = Field(default="#263238", alias="backgroundColor")
    button_color: str = Field(default="#9dff00", alias="buttonColor")
    button_text_color: str = Field(default="#263238", alias="buttonTextColor")

    @field_validator("text_color", "background_color", "button_color", "button_text_color")
    @classmethod
    def _check_hex(cls, value: str) -> str:
        if not is_valid_hex(value):
            raise ValueError(f"invalid color {value!r}, expected #RRGGBB")
        return value


class Settings(BaseModel):
    """
    Immutable settings snapshot handed to a summarization job.

    chunk_size and concurrency_limit carry no defaults here; only the settings
    store supplies them.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_url: str = Field(alias="apiUrl", min_length=1)
    api_key: str = Field(default="", alias="apiKey")
    model: str = Field(min_length=1)
    chunk_size: int = Field(alias="chunkSize", ge=1)
    concurrency_limit: int = Field(alias="concurrencyLimit", ge=1)
    display_theme: DisplayTheme = Field(default_factory=DisplayTheme, alias="displayTheme")

    @property
    def provider(self) -> ProviderShape:
        return ProviderShape.from_url(self.api_url)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a validated copy with the non-None overrides applied."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return Settings.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}") from e


DEFAULT_SETTINGS: dict[str, Any] = {
    "apiUrl": DEFAULT_API_URL,
    "apiKey": "",
    "model": "gpt-4o",
    "chunkSize": 1000,
    "concurrencyLimit": 10,
    "displayTheme": DisplayTheme().model_dump(by_alias=True),
}


def get_config_dir() -> Path:
    """Get the config directory path."""
    config_dir = Path.home() / ".config" / "melt-tube"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings_path() -> Path:
    return get_config_dir() / "settings.json"


def _read_stored() -> dict[str, Any]:
    path = get_settings_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ConfigError(f"Settings file is not valid JSON: {path}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file must hold a JSON object: {path}")
    return data


def _merge(stored: dict[str, Any]) -> dict[str, Any]:
    merged = {**DEFAULT_SETTINGS, **stored}
    theme = stored.get("displayTheme")
    if isinstance(theme, dict):
        merged["displayTheme"] = {**DEFAULT_SETTINGS["displayTheme"], **theme}
    return merged


def load_settings(require_api_key: bool = True, **overrides: Any) -> Settings:
    """
    Load settings, merging stored values over the defaults.

    Args:
        require_api_key: Raise MissingApiKey if no key is stored or in the environment
        **overrides: Non-None values applied on top of the stored settings

    Raises:
        ConfigError: Stored settings or overrides are invalid
        MissingApiKey: No API key available
    """
    merged = _merge(_read_stored())

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    # The environment key follows the provider of the final api_url.
    settings = settings.with_overrides(**overrides)

    if not settings.api_key:
        env_name = API_KEY_ENV[settings.provider]
        env_key = os.environ.get(env_name, "")
        if env_key:
            logger.debug("Using API key from %s", env_name)
            settings = settings.model_copy(update={"api_key": env_key})

    if require_api_key and not settings.api_key:
        raise MissingApiKey(
            "API key not configured. "
            "Set it with: melt-tube config set apiKey 'sk-...' "
            f"(or export {API_KEY_ENV[settings.provider]})"
        )
    return settings


def save_settings(settings: Settings) -> Path:
    """Write settings to disk and return the file path."""
    path = get_settings_path()
    path.write_text(json.dumps(settings.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    return path


def update_setting(key: str, value: str) -> Settings:
    """
    Set one stored value and save.

    Args:
        key: Top-level camelCase key (e.g. "chunkSize") or "displayTheme.<key>"
        value: Raw string value; coerced by the settings model

    Raises:
        ConfigError: Unknown key or invalid value
    """
    stored = _read_stored()

    if key.startswith("displayTheme."):
        theme_key = key.split(".", 1)[1]
        if theme_key not in DEFAULT_SETTINGS["displayTheme"]:
            raise ConfigError(f"Unknown display setting: {theme_key}")
        theme = dict(stored.get("displayTheme") or {})
        theme[theme_key] = value
        stored["displayTheme"] = theme
    elif key in DEFAULT_SETTINGS and key != "displayTheme":
        stored[key] = value
    else:
        raise ConfigError(f"Unknown setting: {key}")

    try:
        settings = Settings.model_validate(_merge(stored))
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e

    save_settings(settings)
    return settings

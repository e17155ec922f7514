"""Configuration loading and validation for GPTTerm.

Settings live in ``~/.config/gptterm/config.toml``. Every section is optional;
missing keys take their defaults and a file that fails validation is ignored
as a whole in favour of the defaults.
"""

from __future__ import annotations

from copy import deepcopy
import logging
import os
from pathlib import Path
import tomllib
from typing import Any
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .credentials import DEFAULT_CREDENTIAL_KEY
from .exceptions import ConfigValidationError
from .models import DEFAULT_TITLE, TITLE_ELLIPSIS, TITLE_MAX_CHARS
from .orchestrator import FAILURE_MESSAGE
from .transport import (
    DEFAULT_BASE_URL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
)

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "gptterm"
CONFIG_PATH = CONFIG_DIR / "config.toml"
STATE_DIR = "~/.local/state/gptterm"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _non_blank(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{what} must be a non-empty string.")
    return value.strip()


class AppConfig(BaseModel):
    """Window title."""

    title: str = "GPTTerm"

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, value: Any) -> str:
        return _non_blank(value, "app.title")


class ApiConfig(BaseModel):
    """Completion endpoint and the generation parameters sent with every call."""

    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1, le=32_768)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=1, le=600)

    @field_validator("model", mode="before")
    @classmethod
    def _check_model(cls, value: Any) -> str:
        return _non_blank(value, "api.model")

    @field_validator("base_url", mode="before")
    @classmethod
    def _check_base_url(cls, value: Any) -> str:
        url = _non_blank(value, "api.base_url")
        parsed = urlparse(url)
        if parsed.scheme.lower() not in ("http", "https"):
            raise ValueError("api.base_url must be an http(s) URL.")
        if not parsed.hostname:
            raise ValueError("api.base_url has no host.")
        return url.rstrip("/")


class ChatConfig(BaseModel):
    """Conversation defaults and how concurrent sends behave."""

    default_title: str = DEFAULT_TITLE
    failure_message: str = FAILURE_MESSAGE
    title_max_chars: int = Field(default=TITLE_MAX_CHARS, ge=1, le=500)
    title_ellipsis: str = TITLE_ELLIPSIS
    serialize_sends: bool = True

    @field_validator("default_title", "failure_message", mode="before")
    @classmethod
    def _check_text(cls, value: Any) -> str:
        return _non_blank(value, "chat text")

    @field_validator("title_ellipsis", mode="before")
    @classmethod
    def _check_ellipsis(cls, value: Any) -> str:
        # An empty marker is allowed; it disables the suffix.
        if not isinstance(value, str):
            raise ValueError("chat.title_ellipsis must be a string.")
        return value


class CredentialsConfig(BaseModel):
    """Location and key name of the stored API key."""

    path: str = f"{STATE_DIR}/credentials.json"
    key: str = DEFAULT_CREDENTIAL_KEY

    @field_validator("path", "key", mode="before")
    @classmethod
    def _check_location(cls, value: Any) -> str:
        return _non_blank(value, "credentials setting")


class KeybindsConfig(BaseModel):
    """Key for each app action; an empty string leaves the action unbound."""

    new_conversation: str = "ctrl+n"
    delete_conversation: str = "ctrl+d"
    settings: str = "ctrl+k"
    quit: str = "ctrl+q"

    @field_validator("*", mode="before")
    @classmethod
    def _check_key(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("keybinds values must be strings.")
        return value.strip()


class LoggingConfig(BaseModel):
    """Log level, format and optional file output."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = f"{STATE_DIR}/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _check_level(cls, value: Any) -> str:
        level = _non_blank(value, "logging.level").upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {', '.join(LOG_LEVELS)}.")
        return level

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _check_log_file_path(cls, value: Any) -> str:
        return _non_blank(value, "logging.log_file_path")


class Config(BaseModel):
    """All configuration sections."""

    model_config = ConfigDict(populate_by_name=True)

    app: AppConfig = AppConfig()
    api: ApiConfig = ApiConfig()
    chat: ChatConfig = ChatConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _log_file_is_not_credentials_file(self) -> Config:
        log_path = Path(self.logging.log_file_path).expanduser()
        if log_path == Path(self.credentials.path).expanduser():
            raise ValueError("logging.log_file_path must differ from credentials.path.")
        return self


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump()


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Create the config directory if needed and return it."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning(
            "config.dir.unavailable",
            extra={"event": "config.dir.unavailable", "path": str(directory), "error": str(exc)},
        )
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` applied, recursing into tables."""
    result = deepcopy(base)
    for key, value in override.items():
        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            result[key] = _deep_merge(existing, value)
        else:
            result[key] = value
    return result


def _restrict_permissions(path: Path) -> None:
    """Make ``path`` owner-only on POSIX; failures are only logged."""
    if os.name != "posix":
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning(
            "config.permissions.failed",
            extra={"event": "config.permissions.failed", "path": str(path), "error": str(exc)},
        )


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    _restrict_permissions(path)
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        LOGGER.warning(
            "config.parse.failed",
            extra={"event": "config.parse.failed", "path": str(path), "error": str(exc)},
        )
        return {}


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged settings, or return a copy of the defaults if they are invalid."""
    try:
        return Config.model_validate(raw).model_dump()
    except ValidationError as exc:
        LOGGER.warning(
            "config.invalid",
            extra={"event": "config.invalid", "errors": exc.error_count(), "detail": str(exc)},
        )
        return deepcopy(DEFAULT_CONFIG)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """Read, merge and validate the config file into a plain nested dict.

    ``config_path`` overrides the default location (``--config`` and tests).
    """
    path = config_path or CONFIG_PATH
    ensure_config_dir(path.parent)
    return _validate_config(_deep_merge(DEFAULT_CONFIG, _read_toml(path)))

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.color import Color, ColorParseError

from .errors import ConfigError


class Settings(BaseSettings):
    """Runtime configuration for relaynav.

    Values are loaded from environment variables and `.env`.

    Notes:
    - The colour theme lives in a separate TOML file (see `load_theme`).
    - RELAYNAV_GESTURE_TIMEOUT_SEC=0 disables the `gg` window entirely.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Backend
    RELAYNAV_BACKEND_BIN: str = Field(default="mullvad")
    # Unset means backend calls block until the process exits.
    RELAYNAV_BACKEND_TIMEOUT_SEC: float | None = Field(default=None)

    # Theme file; overrides XDG discovery when set
    RELAYNAV_CONFIG: Path | None = Field(default=None)

    # Navigation
    RELAYNAV_GESTURE_TIMEOUT_SEC: float = Field(default=1.0, ge=0)

    # Logging (the TUI owns the terminal, so logs go to a file)
    RELAYNAV_LOG_DIR: Path = Field(default=Path("~/.local/state/relaynav"))
    RELAYNAV_LOG_LEVEL: str = Field(default="INFO")
    # Timed rotation retention count (days). Old log files are auto-deleted.
    RELAYNAV_LOG_BACKUP_COUNT: int = Field(default=7)


class ColorTheme(BaseModel):
    """Named colours used by the renderer.

    Every value must be something `rich.color.Color.parse` understands:
    a standard colour name, `#rrggbb`, `rgb(r,g,b)`, `color(n)` or `default`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    connected: str = "green"
    disconnected: str = "red"
    normal_mode: str = "cyan"
    search_mode: str = "yellow"
    background: str = "default"
    items: str = "white"
    items_selected: str = "bright_cyan"
    connection_output: str = "white"

    @field_validator("*")
    @classmethod
    def _parse_color(cls, value: str) -> str:
        try:
            Color.parse(value)
        except ColorParseError as e:
            raise ValueError(str(e)) from e
        return value


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigError(f"Invalid environment settings: {e}") from e


def default_theme_path() -> Path:
    """Return the XDG location of the theme file (which may not exist)."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "relaynav" / "config.toml"


def load_theme(path: Path | str | None = None) -> ColorTheme:
    """Load the colour theme.

    An explicit `path` must exist. Without one, the XDG location is tried and
    the built-in defaults are used when nothing is there.

    Raises:
        ConfigError: file unreadable, invalid TOML, unknown keys or bad colours.
    """
    explicit = path is not None
    p = Path(path).expanduser() if explicit else default_theme_path()

    if not p.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {p}")
        return ColorTheme()

    try:
        with p.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {p}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {p}: {e}") from e

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        raise ConfigError(f"[colors] in {p} must be a table")

    try:
        return ColorTheme.model_validate(colors)
    except ValidationError as e:
        raise ConfigError(f"Invalid colors in {p}: {e}") from e

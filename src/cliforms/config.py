"""Library configuration loaded via python-decouple with typed helpers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Final

from decouple import AutoConfig, Config as DecoupleConfig, RepositoryEnv

_DOTENV_PATH: Final[Path] = Path(".env")


def _build_decouple_config() -> DecoupleConfig | AutoConfig:
    # A missing .env is normal for a library; fall back to plain environment lookups.
    if _DOTENV_PATH.is_file():
        return DecoupleConfig(RepositoryEnv(str(_DOTENV_PATH)))
    return AutoConfig(search_path=str(Path.cwd()))


_decouple_config: Final[DecoupleConfig | AutoConfig] = _build_decouple_config()


@dataclass(slots=True, frozen=True)
class FormSettings:
    """Rendering and input defaults for forms."""

    theme: str
    text_limit: int
    exit_on_interrupt: bool
    clear_screen: bool
    description_width: int


@dataclass(slots=True, frozen=True)
class Settings:
    """Top-level settings."""

    forms: FormSettings
    # Logging
    log_level: str
    log_json_enabled: bool
    log_file: str | None
    log_rich_enabled: bool


def _bool(value: str, *, default: bool) -> bool:
    normalized = value.strip().lower()
    if normalized in {"1", "true", "t", "yes", "y"}:
        return True
    if normalized in {"0", "false", "f", "no", "n"}:
        return False
    return default


def _int(value: str, *, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings."""
    form_settings = FormSettings(
        theme=_decouple_config("CLIFORMS_THEME", default="white"),
        text_limit=max(1, _int(_decouple_config("CLIFORMS_TEXT_LIMIT", default="128"), default=128)),
        exit_on_interrupt=_bool(_decouple_config("CLIFORMS_EXIT_ON_INTERRUPT", default="false"), default=False),
        clear_screen=_bool(_decouple_config("CLIFORMS_CLEAR_SCREEN", default="true"), default=True),
        description_width=max(1, _int(_decouple_config("CLIFORMS_DESCRIPTION_WIDTH", default="50"), default=50)),
    )

    return Settings(
        forms=form_settings,
        log_level=_decouple_config("LOG_LEVEL", default="WARNING"),
        log_json_enabled=_bool(_decouple_config("LOG_JSON_ENABLED", default="false"), default=False),
        log_file=_decouple_config("LOG_FILE", default="") or None,
        log_rich_enabled=_bool(_decouple_config("LOG_RICH_ENABLED", default="true"), default=True),
    )


def clear_settings_cache() -> None:
    """Drop the cached settings so the next lookup re-reads the environment."""
    get_settings.cache_clear()

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "emitter.yaml"
DEFAULT_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey values into a bool.

    Accepts: True/False, 1/0, "true"/"false", "yes"/"no", "on"/"off" (case-insensitive),
    non-empty strings evaluate to True if not matched otherwise.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off", ""}:
            return False
        return True
    return bool(value)


@dataclass
class Settings:
    """Runtime settings for the emitter package.

    Import this module and use the module-level SETTINGS singleton:

        from emitter.settings import SETTINGS
        if SETTINGS.strict:
            ...

    The settings can be constructed/overridden from:
    - A YAML config file (explicit path, env EMITTER_SETTINGS_FILE, or ./emitter.yaml if present)
    - Environment variables (prefix: EMITTER_)

    SETTINGS is built when this module is first imported, so importing the
    package reads ./emitter.yaml from the current working directory and the
    EMITTER_* variables of the process at that moment. A configured file that
    is missing or invalid is logged as an error and defaults are used.
    """

    # Reject non-callable listeners when they are registered instead of when they fire
    strict: bool = False

    # Used by configure_logging(); the library itself never configures logging
    log_level: str = "WARNING"
    log_format: str = DEFAULT_LOG_FORMAT

    def validate(self) -> None:
        """Validate and normalize settings to safe values."""
        self.strict = _as_bool(self.strict)
        level = str(self.log_level).strip().upper()
        if level not in LOG_LEVELS:
            logger.warning("Unknown log level %r; falling back to WARNING", self.log_level)
            level = "WARNING"
        self.log_level = level
        if not self.log_format:
            self.log_format = DEFAULT_LOG_FORMAT

    def as_dict(self) -> Dict[str, Any]:
        return {
            "strict": self.strict,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    # ------------------------ Loading & Overrides ------------------------
    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        allowed = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(k for k in data if k not in allowed)
        if unknown:
            logger.warning("Ignoring unknown settings keys: %s", ", ".join(unknown))
        obj = cls(**{k: v for k, v in data.items() if k in allowed})
        obj.validate()
        return obj

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        mapping = {
            "EMITTER_STRICT": ("strict", _as_bool),
            "EMITTER_LOG_LEVEL": ("log_level", str),
            "EMITTER_LOG_FORMAT": ("log_format", str),
        }
        out: Dict[str, Any] = {}
        for env_key, (field_name, caster) in mapping.items():
            if env.get(env_key, "") != "":
                out[field_name] = caster(env[env_key])
        return out

    @classmethod
    def from_yaml_file(cls, path: Path) -> Dict[str, Any]:
        """Read settings from a YAML file.

        Keys may sit at the top level or under an ``emitter:`` section.
        """
        if not path.exists():
            raise ConfigError(f"Settings file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                doc = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to read settings file {path}: {exc}") from exc
        if not isinstance(doc, dict):
            raise ConfigError(f"Settings file {path} must contain a mapping, got {type(doc).__name__}")
        logger.debug("Loaded settings file: %s", path)
        flat: Dict[str, Any] = {k: v for k, v in doc.items() if not isinstance(v, dict)}
        if isinstance(doc.get("emitter"), dict):
            flat.update(doc["emitter"])
        return flat

    @classmethod
    def discover_config_path(cls, env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
        env = os.environ if env is None else env
        # EMITTER_SETTINGS_FILE can be absolute or relative
        env_path = env.get("EMITTER_SETTINGS_FILE")
        if env_path:
            return Path(env_path).expanduser().resolve()
        default_path = Path.cwd() / DEFAULT_CONFIG_NAME
        if default_path.exists():
            return default_path
        return None

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Path | str] = None,
    ) -> "Settings":
        # Order of precedence (lowest to highest): defaults < file < env
        data: Dict[str, Any] = {}
        if file_path is not None:
            chosen_path: Optional[Path] = Path(file_path).expanduser().resolve()
        else:
            chosen_path = cls.discover_config_path(env)
        if chosen_path is not None:
            data.update(cls.from_yaml_file(chosen_path))
        data.update(cls.from_env(env))
        return cls.from_dict(data)


def configure_logging(settings: Settings, verbosity: int = 0) -> None:
    """Apply ``settings`` to the root logger; each verbosity step lowers the threshold."""
    level = getattr(logging, settings.log_level, logging.WARNING)
    if verbosity == 1:
        level = min(level, logging.INFO)
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format=settings.log_format)


def _build_default_settings() -> Settings:
    try:
        return Settings.from_sources()
    except ConfigError as exc:
        logger.error("%s; using default settings", exc)
        return Settings()


# Module-level singleton consulted by the registry.
SETTINGS: Settings = _build_default_settings()

__all__ = [
    "Settings",
    "SETTINGS",
    "configure_logging",
]

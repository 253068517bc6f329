"""
GymPro client configuration.

Settings come from three layers, later ones winning:

    1. the defaults on the section dataclasses below
    2. config/settings.toml (or the file named by GYMPRO_CONFIG)
    3. GYMPRO_* environment variables

Every value from the file or the environment goes through the check
registered for it in _CHECKS; a value that fails is logged and the
previous layer's value is kept, so a typo never stops the client from
starting. Unknown sections and keys are reported the same way.

Usage:
    from core.config import get_config

    config = get_config()
    config.api.base_url
    config.reports.revenue_months
"""

import logging
import os
import re
import threading
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger("gympro.config")

CONFIG_ENV = "GYMPRO_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.toml"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

@dataclass
class ApiSettings:
    base_url: str = "http://localhost:8000"


@dataclass
class StorageSettings:
    """path = "" keeps the session in memory only."""
    path: str = "data/session.json"
    token_key: str = "gympro_token"
    user_key: str = "gympro_user"


@dataclass
class ReportSettings:
    output_dir: str = "data/reports"
    brand: str = "GymPro"
    revenue_months: int = 6
    top_products: int = 5


@dataclass
class PaymentSettings:
    checkout_script_url: str = "https://checkout.razorpay.com/v1/checkout.js"
    merchant_name: str = "GymPro"
    theme_color: str = "#E11D48"


@dataclass
class NoticeSettings:
    max_history: int = 100


@dataclass
class LoggingSettings:
    level: str = "info"


_SECTIONS = {
    "api": ApiSettings,
    "storage": StorageSettings,
    "reports": ReportSettings,
    "payments": PaymentSettings,
    "notices": NoticeSettings,
    "logging": LoggingSettings,
}


# ---------------------------------------------------------------------------
# Value checks
# ---------------------------------------------------------------------------

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _http_url(value: Any) -> str:
    text = str(value).strip().rstrip("/")
    if not text.startswith(("http://", "https://")):
        raise ValueError(f"expected an http(s) URL, got {value!r}")
    return text


def _positive_int(value: Any) -> int:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"expected a whole number, got {value!r}")
    number = int(value)
    if number < 1:
        raise ValueError(f"must be at least 1, got {number}")
    return number


def _non_empty(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("must not be empty")
    return text


def _log_level(value: Any) -> str:
    level = str(value).strip().lower()
    if level not in _LOG_LEVELS:
        raise ValueError(f"must be one of {', '.join(_LOG_LEVELS)}")
    return level


def _hex_color(value: Any) -> str:
    text = str(value).strip()
    if not _HEX_COLOR.match(text):
        raise ValueError(f"expected a #RRGGBB colour, got {value!r}")
    return text


_CHECKS: dict[str, Callable[[Any], Any]] = {
    "api.base_url": _http_url,
    "storage.path": str,
    "storage.token_key": _non_empty,
    "storage.user_key": _non_empty,
    "reports.output_dir": _non_empty,
    "reports.brand": _non_empty,
    "reports.revenue_months": _positive_int,
    "reports.top_products": _positive_int,
    "payments.checkout_script_url": _http_url,
    "payments.merchant_name": _non_empty,
    "payments.theme_color": _hex_color,
    "notices.max_history": _positive_int,
    "logging.level": _log_level,
}

_ENV_OVERRIDES: dict[str, str] = {
    "GYMPRO_API_URL": "api.base_url",
    "GYMPRO_STORAGE_PATH": "storage.path",
    "GYMPRO_REPORTS_DIR": "reports.output_dir",
    "GYMPRO_REVENUE_MONTHS": "reports.revenue_months",
    "GYMPRO_TOP_PRODUCTS": "reports.top_products",
    "GYMPRO_CHECKOUT_SCRIPT_URL": "payments.checkout_script_url",
    "GYMPRO_LOG_LEVEL": "logging.level",
}


# ---------------------------------------------------------------------------
# GymProConfig
# ---------------------------------------------------------------------------

class GymProConfig:
    """All client settings, one dataclass per section.

    Args:
        config_path: TOML file to read. Defaults to $GYMPRO_CONFIG, then
                     config/settings.toml at the project root.
    """

    def __init__(self, config_path: str | Path | None = None):
        self.path = _resolve_path(config_path)
        self.api = ApiSettings()
        self.storage = StorageSettings()
        self.reports = ReportSettings()
        self.payments = PaymentSettings()
        self.notices = NoticeSettings()
        self.logging = LoggingSettings()
        self.rejected: list[str] = []

        self._apply_file(_read_toml(self.path))
        self._apply_env()

    def _apply_file(self, data: dict[str, Any]):
        origin = str(self.path)
        for name, values in data.items():
            if name not in _SECTIONS or not isinstance(values, dict):
                self._reject(name, origin, "unknown section")
                continue
            known = {f.name for f in fields(_SECTIONS[name])}
            for key, raw in values.items():
                if key not in known:
                    self._reject(f"{name}.{key}", origin, "unknown key")
                    continue
                self._set(f"{name}.{key}", raw, origin)

    def _apply_env(self):
        for env_var, dotpath in _ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is not None and self._set(dotpath, raw, env_var):
                logger.info("Env override: %s → %s", env_var, dotpath)

    def _set(self, dotpath: str, raw: Any, origin: str) -> bool:
        section, _, key = dotpath.partition(".")
        try:
            value = _CHECKS[dotpath](raw)
        except (TypeError, ValueError) as e:
            self._reject(dotpath, origin, str(e))
            return False
        setattr(getattr(self, section), key, value)
        return True

    def _reject(self, dotpath: str, origin: str, reason: str):
        self.rejected.append(dotpath)
        logger.warning("Ignoring %s from %s: %s", dotpath, origin, reason)


def _resolve_path(config_path: str | Path | None) -> Path:
    if config_path is not None:
        return Path(config_path)
    from_env = os.environ.get(CONFIG_ENV)
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG_PATH


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        logger.warning("Config file not found at %s, using defaults", path)
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to read %s: %s, using defaults", path, e)
        return {}
    logger.info("Configuration loaded from %s", path)
    return data


# ---------------------------------------------------------------------------
# Thread-safe singleton
# ---------------------------------------------------------------------------

_instance: GymProConfig | None = None
_instance_lock = threading.Lock()


def get_config(config_path: str | Path | None = None) -> GymProConfig:
    """Return the process-wide GymProConfig, creating it on first call.

    config_path only matters on that first call.
    """
    global _instance
    if _instance is None:
        with _instance_lock:
            if _instance is None:
                _instance = GymProConfig(config_path)
    return _instance


def reset_config():
    """Drop the singleton so the next get_config() re-reads everything."""
    global _instance
    with _instance_lock:
        _instance = None

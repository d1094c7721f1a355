"""
Tool settings.

Layered, later layers win:
    1. built-in defaults
    2. a YAML mapping file (wpconf.yml in the working directory, or the
       file named by WPCONF_CONFIG)
    3. WPCONF_* environment variables
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from wpconf.errors import WPConfigError
from wpconf.keys import SALT_URL
from wpconf.model import DEFAULT_ANCHOR, DEFAULT_SEPARATOR, AnchorSpec, Placement

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = "wpconf.yml"

_ENV_KEYS = {
    "WPCONF_PHP": "php_binary",
    "WPCONF_PHP_TIMEOUT": "php_timeout",
    "WPCONF_SALT_URL": "salt_url",
    "WPCONF_HTTP_TIMEOUT": "http_timeout",
    "WPCONF_PATH": "config_path",
}


@dataclass(frozen=True)
class Settings:
    """
    Properties:
        php_binary: PHP executable used for introspection
        php_timeout: Seconds before an introspection run is killed
        salt_url: Secret-key service used when local generation fails
        http_timeout: Seconds before the secret-key request gives up
        anchor: Default anchor marker text for new definitions
        placement: "before" or "after" the anchor line
        separator: Text placed between a new definition and the anchor
        config_path: Explicit wp-config.php path, skips discovery
    """

    php_binary: str = "php"
    php_timeout: float = 30
    salt_url: str = SALT_URL
    http_timeout: float = 30
    anchor: str = DEFAULT_ANCHOR
    placement: str = Placement.BEFORE.value
    separator: str = DEFAULT_SEPARATOR
    config_path: Optional[str] = None

    def anchor_spec(self) -> AnchorSpec:
        return AnchorSpec(
            marker_text=self.anchor,
            placement=Placement(self.placement),
            separator=self.separator,
        )


def _coerce(name: str, value: Any) -> Any:
    if name in ("php_timeout", "http_timeout"):
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise WPConfigError(f"Setting '{name}' must be a number, got {value!r}.") from exc
    if name == "placement":
        try:
            return Placement(str(value)).value
        except ValueError as exc:
            raise WPConfigError(f"Setting 'placement' must be 'before' or 'after', got {value!r}.") from exc
    return None if value is None else str(value)


def _apply(settings: Settings, overrides: Mapping[str, Any], source: str) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise WPConfigError(f"Unknown setting(s) in {source}: {', '.join(unknown)}",
                            context={"source": source, "keys": unknown})
    return replace(settings, **{k: _coerce(k, v) for k, v in overrides.items()})


def load_settings_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as exc:
        raise WPConfigError(f"Could not read settings file '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise WPConfigError(f"Invalid YAML in settings file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise WPConfigError(f"Settings file '{path}' must contain a mapping.")
    return data


def load_settings(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None,
                  cwd: Optional[Path] = None) -> Settings:
    """Build Settings from defaults, an optional YAML file and the environment."""
    environ = os.environ if environ is None else environ
    settings = Settings()

    if path is None and environ.get("WPCONF_CONFIG"):
        path = Path(environ["WPCONF_CONFIG"])
    if path is None:
        candidate = Path(cwd or Path.cwd()) / SETTINGS_FILENAME
        path = candidate if candidate.is_file() else None
    if path is not None:
        logger.debug("Loading settings from %s", path)
        settings = _apply(settings, load_settings_file(Path(path)), str(path))

    env_overrides = {field_name: environ[key] for key, field_name in _ENV_KEYS.items() if environ.get(key)}
    if env_overrides:
        settings = _apply(settings, env_overrides, "environment")
    return settings

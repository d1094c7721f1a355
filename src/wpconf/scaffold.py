"""
Generation of a brand-new wp-config.php from the bundled jinja2 template.

Every value is written as an escaped PHP string literal through the
template's `php` filter; only `extra_php` is copied in verbatim.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from jinja2 import Environment, StrictUndefined

from wpconf import locator
from wpconf.errors import WPConfigError
from wpconf.file_io import read_text, write_text_atomic
from wpconf.keys import SALT_CONSTANTS, generate_salts
from wpconf.lexer import quote_php_string
from wpconf.model import Kind

logger = logging.getLogger(__name__)

TEMPLATE_NAME = "wp-config.php.j2"
CREATE_SALTS = SALT_CONSTANTS + ("WP_CACHE_KEY_SALT",)

_PREFIX_RE = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass
class CreateOptions:
    """
    Values for a new config file.

    Properties:
        dbname, dbuser, dbpass, dbhost: Database credentials
        dbprefix: Table prefix, letters, digits and underscores only
        dbcharset, dbcollate: Database charset and collation
        locale: WPLANG value, only written for WordPress before 4.0
        extra_php: PHP code copied in before the anchor line
        skip_salts: Leave the keys and salts out (supply them via extra_php)
    """

    dbname: str
    dbuser: str
    dbpass: str = ""
    dbhost: str = "localhost"
    dbprefix: str = "wp_"
    dbcharset: str = "utf8"
    dbcollate: str = ""
    locale: Optional[str] = None
    extra_php: str = ""
    skip_salts: bool = False
    wp_version: Optional[str] = None
    salts: Dict[str, str] = field(default_factory=dict)


def _environment() -> Environment:
    env = Environment(
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
        autoescape=False,
    )
    env.filters["php"] = lambda value: quote_php_string("" if value is None else str(value))
    return env


def load_template() -> str:
    return resources.files("wpconf").joinpath("templates", TEMPLATE_NAME).read_text(encoding="utf-8")


def read_core_version(wp_root: Union[str, Path]) -> Dict[str, Optional[str]]:
    """
    Read $wp_version and $wp_local_package from wp-includes/version.php.

    The file is scanned, not executed. Missing values come back as None.
    """
    version_file = Path(wp_root) / "wp-includes" / "version.php"
    if not version_file.is_file():
        return {"wp_version": None, "wp_local_package": None}
    text = read_text(version_file)
    found = {}
    for name in ("wp_version", "wp_local_package"):
        definition = locator.find(text, Kind.VARIABLE, name)
        found[name] = definition.value if definition is not None else None
    return found


def _version_tuple(version: str):
    parts = []
    for piece in re.split(r"[.-]", version):
        if not piece.isdigit():
            break
        parts.append(int(piece))
    return tuple(parts)


def render_config(options: CreateOptions,
                  salt_source: Callable[..., Dict[str, str]] = generate_salts,
                  **salt_kwargs) -> str:
    """
    Render the config text.

    Raises:
        WPConfigError: Invalid table prefix
        KeyGenerationError: Salts requested but no source could provide them
    """
    if not _PREFIX_RE.match(options.dbprefix or ""):
        raise WPConfigError("--dbprefix can only contain numbers, letters, and underscores.")

    salts: Dict[str, str] = {}
    if not options.skip_salts:
        salts = dict(options.salts) or salt_source(CREATE_SALTS, remote_names=SALT_CONSTANTS, **salt_kwargs)

    add_wplang = bool(options.wp_version) and _version_tuple(options.wp_version) < (4, 0)

    context = {
        "dbname": options.dbname,
        "dbuser": options.dbuser,
        "dbpass": options.dbpass,
        "dbhost": options.dbhost,
        "dbcharset": options.dbcharset,
        "dbcollate": options.dbcollate,
        "dbprefix": options.dbprefix,
        "locale": options.locale or "",
        "add_wplang": add_wplang,
        "extra_php": (options.extra_php or "").rstrip("\n"),
        "salts": salts,
    }
    return _environment().from_string(load_template()).render(**context)


def create_config(path: Union[str, Path], options: CreateOptions, force: bool = False,
                  **render_kwargs) -> Path:
    """
    Write a new config file at path.

    Raises:
        WPConfigError: The file exists and force is not set
        ConfigIOError: The file cannot be written
    """
    path = Path(path)
    if path.exists() and not force:
        raise WPConfigError(f"The '{path.name}' file already exists.", context={"path": str(path)})

    text = render_config(options, **render_kwargs)
    write_text_atomic(path, text)
    logger.info("Generated %s", path)
    return path

"""
wpconf command line.

Commands mirror the `wp config` family:

    wpconf path
    wpconf list [FILTER...] [--strict] [--fields F] [--format table|csv|json|yaml]
    wpconf get NAME [--type] [--format var_export|json|yaml]
    wpconf set NAME VALUE [--type] [--raw] [--no-add] [--anchor] [--placement] [--separator]
    wpconf delete NAME [--type]
    wpconf has NAME [--type]
    wpconf edit
    wpconf shuffle-salts
    wpconf create --dbname NAME --dbuser USER [...]

Exit status is 0 on success and 1 on error; `has` exits 1 when the
name is not defined.
"""

from __future__ import annotations

import argparse
import logging
import os
import shlex
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from wpconf import __version__
from wpconf.anchor import parse_separator
from wpconf.backends import ExecutionContext, PhpExecutionContext
from wpconf.errors import (
    AnchorNotFoundError,
    ConfigIOError,
    NotFoundError,
    WPConfigError,
)
from wpconf.file_io import CONFIG_FILENAME, locate_config, read_text, write_text_atomic
from wpconf.introspector import ConfigIntrospector, filter_entries, get_value
from wpconf.keys import shuffle_salts
from wpconf.model import AnchorSpec, Kind, Placement, TransformOptions
from wpconf.scaffold import CreateOptions, create_config, read_core_version
from wpconf.serialization import DEFAULT_FIELDS, ENTRY_FORMATS, VALUE_FORMATS, format_entries, format_value
from wpconf.settings import Settings, load_settings
from wpconf.transformer import ConfigTransformer

logger = logging.getLogger(__name__)

TYPE_CHOICES = [k.value for k in Kind]


class CommandError(WPConfigError):
    """Raised by a command to stop with an error message."""


def _success(message: str) -> None:
    print(f"Success: {message}")


def _warning(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


# =========================================================================
# ARGUMENTS
# =========================================================================

def _add_type_flag(parser: argparse.ArgumentParser, verb: str) -> None:
    parser.add_argument(
        "--type",
        choices=TYPE_CHOICES,
        default=Kind.ALL.value,
        help=f"Type of the config value to {verb} (default: all)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wpconf",
        description="Read and edit the constants and variables of a wp-config.php file.",
    )
    parser.add_argument("--path", help="Path to wp-config.php (default: search upwards from the working directory)")
    parser.add_argument("--settings", help="Settings YAML file (default: ./wpconf.yml)")
    parser.add_argument("--debug", action="store_true", help="Log debug output to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    sub.add_parser("path", help="Print the path of the config file")

    p = sub.add_parser("list", help="List variables, constants and includes defined by the file")
    p.add_argument("filter", nargs="*", help="Name or partial name to filter by")
    p.add_argument("--fields", default=",".join(DEFAULT_FIELDS), help="Comma separated fields to show")
    p.add_argument("--format", choices=ENTRY_FORMATS, default="table")
    p.add_argument("--strict", action="store_true", help="Require exact name matches for filters")

    p = sub.add_parser("get", help="Print the runtime value of a constant or variable")
    p.add_argument("name")
    _add_type_flag(p, "get")
    p.add_argument("--format", choices=VALUE_FORMATS, default="var_export")

    p = sub.add_parser("set", help="Set the value of a constant or variable")
    p.add_argument("name")
    p.add_argument("value")
    _add_type_flag(p, "set")
    p.add_argument("--raw", action="store_true", help="Write the value as a PHP expression, not a string")
    p.add_argument("--add", action=argparse.BooleanOptionalAction, default=True,
                   help="Add the value when it does not exist yet (default: on)")
    p.add_argument("--anchor", help="Anchor text new values are placed around")
    p.add_argument("--placement", choices=[pl.value for pl in Placement],
                   help="Place new values before or after the anchor")
    p.add_argument("--separator", help="Separator between a new value and the anchor; \\n, \\r and \\t are expanded")

    p = sub.add_parser("delete", help="Delete a constant or variable")
    p.add_argument("name")
    _add_type_flag(p, "delete")

    p = sub.add_parser("has", help="Exit 0 when a constant or variable is defined, 1 otherwise")
    p.add_argument("name")
    _add_type_flag(p, "check")

    sub.add_parser("edit", help="Open the file in $EDITOR")
    sub.add_parser("shuffle-salts", help="Refresh the authentication keys and salts")

    p = sub.add_parser("create", help="Generate a new wp-config.php")
    p.add_argument("--dbname", required=True)
    p.add_argument("--dbuser", required=True)
    p.add_argument("--dbpass", default="")
    p.add_argument("--dbhost", default="localhost")
    p.add_argument("--dbprefix", default="wp_")
    p.add_argument("--dbcharset", default="utf8")
    p.add_argument("--dbcollate", default="")
    p.add_argument("--locale", help="WPLANG value (default: $wp_local_package)")
    p.add_argument("--extra-php", action="store_true", help="Copy additional PHP code from stdin")
    p.add_argument("--skip-salts", action="store_true", help="Do not generate keys and salts")
    p.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


# =========================================================================
# COMMANDS
# =========================================================================

def _config_path(args: argparse.Namespace, settings: Settings) -> Path:
    explicit = args.path or settings.config_path
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise CommandError(f"'{path}' not found.")
        return path
    path = locate_config()
    if path is None:
        raise CommandError(f"'{CONFIG_FILENAME}' not found.\nEither create one manually or use `wpconf create`.")
    return path


def _transformation_error(exc: Exception) -> CommandError:
    return CommandError(f"Could not process the '{CONFIG_FILENAME}' transformation.\nReason: {exc}")


def cmd_path(args, settings, context) -> int:
    print(_config_path(args, settings))
    return 0


def cmd_list(args, settings, context) -> int:
    path = _config_path(args, settings)
    if args.strict and not args.filter:
        raise CommandError("The --strict option can only be used in combination with a filter.")
    fields = [f.strip() for f in args.fields.split(",") if f.strip()]

    entries = ConfigIntrospector(context).list_entries(path)
    entries = filter_entries(entries, args.filter, args.strict)
    if not entries:
        raise CommandError(f"No matching entries found in '{CONFIG_FILENAME}'.")
    try:
        print(format_entries(entries, args.format, fields))
    except ValueError as exc:
        raise CommandError(str(exc)) from exc
    return 0


def cmd_get(args, settings, context) -> int:
    path = _config_path(args, settings)
    entries = ConfigIntrospector(context).list_entries(path)
    value = get_value(entries, args.name, Kind(args.type))
    print(format_value(value, args.format))
    return 0


def _resolve_for_write(transformer: ConfigTransformer, kind: Kind, name: str, adding_allowed: bool):
    """Return (kind, adding) for set/delete, raising CommandError when not possible."""
    if kind is Kind.ALL:
        try:
            return transformer.resolve_kind(kind, name), False
        except NotFoundError as exc:
            message = str(exc)
            if adding_allowed:
                message += " Specify an explicit --type=<type> to add."
            raise CommandError(message) from exc
    if not transformer.exists(kind, name):
        if not adding_allowed:
            raise NotFoundError(name, kind.value)
        return kind, True
    return kind, False


def cmd_set(args, settings, context) -> int:
    path = _config_path(args, settings)
    transformer = ConfigTransformer(path)
    defaults = settings.anchor_spec()
    anchor = AnchorSpec(
        marker_text=args.anchor if args.anchor is not None else defaults.marker_text,
        placement=Placement(args.placement) if args.placement else defaults.placement,
        separator=parse_separator(args.separator) if args.separator is not None else defaults.separator,
    )
    options = TransformOptions(raw=args.raw, add=args.add, anchor=anchor)

    kind, adding = _resolve_for_write(transformer, Kind(args.type), args.name, options.add)
    try:
        transformer.update(kind, args.name, args.value, options)
    except (AnchorNotFoundError, ConfigIOError) as exc:
        raise _transformation_error(exc) from exc

    raw = "raw " if args.raw else ""
    if adding:
        _success(f"Added the {kind.value} '{args.name}' to the '{CONFIG_FILENAME}' file "
                 f"with the {raw}value '{args.value}'.")
    else:
        _success(f"Updated the {kind.value} '{args.name}' in the '{CONFIG_FILENAME}' file "
                 f"with the {raw}value '{args.value}'.")
    return 0


def cmd_delete(args, settings, context) -> int:
    path = _config_path(args, settings)
    transformer = ConfigTransformer(path)
    kind, _ = _resolve_for_write(transformer, Kind(args.type), args.name, False)
    try:
        transformer.remove(kind, args.name)
    except ConfigIOError as exc:
        raise _transformation_error(exc) from exc
    _success(f"Deleted the {kind.value} '{args.name}' from the '{CONFIG_FILENAME}' file.")
    return 0


def cmd_has(args, settings, context) -> int:
    path = _config_path(args, settings)
    return 0 if ConfigTransformer(path).exists(Kind(args.type), args.name) else 1


def cmd_edit(args, settings, context) -> int:
    path = _config_path(args, settings)
    original = read_text(path)
    editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"

    with tempfile.TemporaryDirectory(prefix="wpconf-edit-") as tmp:
        scratch = Path(tmp) / CONFIG_FILENAME
        write_text_atomic(scratch, original)
        status = subprocess.call(shlex.split(editor) + [str(scratch)])
        edited = read_text(scratch)

    if status != 0 or edited == original:
        _warning(f"No changes made to {CONFIG_FILENAME}, aborted.")
        return 0
    write_text_atomic(path, edited)
    return 0


def cmd_shuffle_salts(args, settings, context) -> int:
    path = _config_path(args, settings)
    transformer = ConfigTransformer(path)
    try:
        shuffle_salts(transformer, url=settings.salt_url, timeout=settings.http_timeout)
    except (AnchorNotFoundError, ConfigIOError) as exc:
        raise _transformation_error(exc) from exc
    _success("Shuffled the salt keys.")
    return 0


def cmd_create(args, settings, context) -> int:
    target = Path(args.path) if args.path else Path.cwd() / CONFIG_FILENAME
    if target.exists() and not args.force:
        raise CommandError(f"The '{CONFIG_FILENAME}' file already exists.")

    core = read_core_version(target.parent)
    options = CreateOptions(
        dbname=args.dbname,
        dbuser=args.dbuser,
        dbpass=args.dbpass,
        dbhost=args.dbhost,
        dbprefix=args.dbprefix,
        dbcharset=args.dbcharset,
        dbcollate=args.dbcollate,
        locale=args.locale if args.locale is not None else (core["wp_local_package"] or ""),
        extra_php=sys.stdin.read() if args.extra_php else "",
        skip_salts=args.skip_salts,
        wp_version=core["wp_version"],
    )
    try:
        create_config(target, options, force=args.force,
                      url=settings.salt_url, timeout=settings.http_timeout)
    except ConfigIOError as exc:
        raise CommandError(f"Could not create new '{CONFIG_FILENAME}' file.\nReason: {exc}") from exc
    _success(f"Generated '{CONFIG_FILENAME}' file.")
    return 0


COMMANDS = {
    "path": cmd_path,
    "list": cmd_list,
    "get": cmd_get,
    "set": cmd_set,
    "delete": cmd_delete,
    "has": cmd_has,
    "edit": cmd_edit,
    "shuffle-salts": cmd_shuffle_salts,
    "create": cmd_create,
}


def main(argv: Optional[Sequence[str]] = None, context: Optional[ExecutionContext] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(Path(args.settings) if args.settings else None)
        if context is None:
            context = PhpExecutionContext(settings.php_binary, settings.php_timeout)
        return COMMANDS[args.command](args, settings, context)
    except WPConfigError as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

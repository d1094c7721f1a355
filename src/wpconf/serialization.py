"""
Serialization helpers for introspection entries and single values.

Provides table, CSV, JSON and YAML renderings of entry listings, and
var_export/JSON/YAML renderings of a single value.
"""
from __future__ import annotations

import csv
import json
from io import StringIO
from typing import Any, Dict, Iterable, List, Sequence

import yaml

from wpconf.lexer import quote_php_string
from wpconf.model import ConfigEntry, EntryType

DEFAULT_FIELDS = ("name", "value", "type")
ENTRY_FORMATS = ("table", "csv", "json", "yaml")
VALUE_FORMATS = ("var_export", "json", "yaml")


def entry_to_dict(e: ConfigEntry, fields: Sequence[str] = DEFAULT_FIELDS) -> Dict[str, Any]:
    d = e.to_dict()
    return {f: d[f] for f in fields}


def entry_from_dict(d: Dict[str, Any]) -> ConfigEntry:
    return ConfigEntry(name=d["name"], value=d.get("value"), type=EntryType(d["type"]))


def entries_to_json(entries: Iterable[ConfigEntry], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    return json.dumps([entry_to_dict(e, fields) for e in entries])


def entries_from_json(s: str) -> List[ConfigEntry]:
    return [entry_from_dict(d) for d in json.loads(s)]


def entries_to_yaml(entries: Iterable[ConfigEntry], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    return yaml.safe_dump([entry_to_dict(e, fields) for e in entries], sort_keys=False)


def entries_to_csv(entries: Iterable[ConfigEntry], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    out = StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(fields)
    for e in entries:
        d = entry_to_dict(e, fields)
        writer.writerow([_cell(d[f]) for f in fields])
    return out.getvalue()


def _cell(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else ""
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def entries_to_table(entries: Iterable[ConfigEntry], fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    """Render entries as an ASCII table with a header row."""
    rows = [[_cell(entry_to_dict(e, fields)[f]) for f in fields] for e in entries]
    widths = [len(f) for f in fields]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def _line(cells):
        return "|" + "|".join(f" {c.ljust(w)} " for c, w in zip(cells, widths)) + "|"

    lines = [border, _line(fields), border]
    lines.extend(_line(row) for row in rows)
    lines.append(border)
    return "\n".join(lines)


def format_entries(entries: Iterable[ConfigEntry], fmt: str = "table",
                   fields: Sequence[str] = DEFAULT_FIELDS) -> str:
    entries = list(entries)
    unknown = [f for f in fields if f not in DEFAULT_FIELDS]
    if unknown:
        raise ValueError(f"Invalid field(s): {', '.join(unknown)}")
    if fmt == "table":
        return entries_to_table(entries, fields)
    if fmt == "csv":
        return entries_to_csv(entries, fields)
    if fmt == "json":
        return entries_to_json(entries, fields)
    if fmt == "yaml":
        return entries_to_yaml(entries, fields)
    raise ValueError(f"Unsupported format: {fmt}")


def php_var_export(value: Any, indent: int = 0) -> str:
    """Render a decoded runtime value the way PHP's var_export() prints it."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return quote_php_string(value)
    if isinstance(value, (list, dict)):
        items = value.items() if isinstance(value, dict) else enumerate(value)
        pad = "  " * (indent + 1)
        lines = ["array ("]
        for key, item in items:
            key_str = str(key) if isinstance(key, int) else quote_php_string(str(key))
            lines.append(f"{pad}{key_str} => {php_var_export(item, indent + 1)},")
        lines.append("  " * indent + ")")
        return "\n".join(lines)
    return quote_php_string(str(value))


def format_value(value: Any, fmt: str = "var_export") -> str:
    if fmt == "var_export":
        # Plain strings print bare, like WP-CLI's print_value
        return value if isinstance(value, str) else php_var_export(value)
    if fmt == "json":
        return json.dumps(value)
    if fmt == "yaml":
        out = yaml.safe_dump(value, default_flow_style=False).rstrip("\n")
        # Scalars get an explicit document end marker
        if out.endswith("\n..."):
            out = out[: -len("\n...")]
        return out
    raise ValueError(f"Unsupported format: {fmt}")

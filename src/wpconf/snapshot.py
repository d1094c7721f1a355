"""
Snapshot Differ.

Pure functions comparing two EnvironmentSnapshot captures. Order follows
the `after` capture, which keeps the config file's declaration order.
"""

from typing import Any, Iterable, List, Mapping

from wpconf.model import ConfigEntry, EntryType, EnvironmentSnapshot, IncludeRecord


def diff(before: Mapping[str, Any], after: Mapping[str, Any], kind: EntryType,
         exclude: Iterable[str] = ()) -> List[ConfigEntry]:
    """
    Entries for every key that appears in `after` but not in `before`.

    Args:
        before: Mapping captured before execution
        after: Mapping captured after execution
        kind: EntryType given to every emitted entry
        exclude: Keys never reported (bookkeeping names)

    Returns:
        List of ConfigEntry in `after` insertion order
    """
    excluded = set(exclude)
    return [
        ConfigEntry(name=name, value=value, type=kind)
        for name, value in after.items()
        if name not in before and name not in excluded
    ]


def diff_includes(before: EnvironmentSnapshot, after: EnvironmentSnapshot) -> List[ConfigEntry]:
    """Files loaded between the two captures, reported by basename and full path."""
    seen = set(before.included_files)
    entries = []
    for path in after.included_files:
        if path in seen:
            continue
        seen.add(path)
        record = IncludeRecord(path)
        entries.append(ConfigEntry(name=record.name, value=record.path, type=EntryType.INCLUDES))
    return entries

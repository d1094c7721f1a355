"""
Tests for the Snapshot Differ.
"""

from wpconf.model import EntryType, EnvironmentSnapshot
from wpconf.snapshot import diff, diff_includes


def test_new_keys_only():
    before = {"PHP_VERSION": "8.2", "E_ALL": 32767}
    after = {"PHP_VERSION": "8.2", "E_ALL": 32767, "DB_NAME": "wp", "DB_USER": "root"}
    entries = diff(before, after, EntryType.CONSTANT)
    assert [(e.name, e.value, e.type) for e in entries] == [
        ("DB_NAME", "wp", EntryType.CONSTANT),
        ("DB_USER", "root", EntryType.CONSTANT),
    ]


def test_order_follows_after():
    after = {"z": 1, "a": 2, "m": 3}
    assert [e.name for e in diff({}, after, EntryType.VARIABLE)] == ["z", "a", "m"]


def test_preexisting_key_with_changed_value_is_not_reported():
    """Only introduced names count, not reassigned ones."""
    assert diff({"a": 1}, {"a": 2}, EntryType.VARIABLE) == []


def test_excluded_names():
    after = {"__wpconf_before": {}, "table_prefix": "wp_"}
    entries = diff({}, after, EntryType.VARIABLE, exclude=("__wpconf_before",))
    assert [e.name for e in entries] == ["table_prefix"]


def test_includes():
    before = EnvironmentSnapshot(included_files=("/tmp/wrapper.php",))
    after = EnvironmentSnapshot(included_files=(
        "/tmp/wrapper.php", "/srv/www/wp-config-local.php", "/srv/www/wp-config-local.php",
    ))
    entries = diff_includes(before, after)
    assert len(entries) == 1
    assert entries[0].name == "wp-config-local.php"
    assert entries[0].value == "/srv/www/wp-config-local.php"
    assert entries[0].type is EntryType.INCLUDES

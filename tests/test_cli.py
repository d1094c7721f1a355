"""
Tests for the wpconf command line.
"""

import json

import pytest

from wpconf.backends import ExecutionContext, ExecutionTrace
from wpconf.cli import main
from wpconf.model import EnvironmentSnapshot


class StaticContext(ExecutionContext):
    """Reports a fixed set of definitions without running anything."""

    def execute(self, source, path):
        return ExecutionTrace(
            before=EnvironmentSnapshot(),
            after=EnvironmentSnapshot(
                constants={"DB_NAME": "wordpress", "DB_HOST": "localhost", "WP_DEBUG": False},
                variables={"table_prefix": "wp_"},
            ),
        )


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    for name in ("WPCONF_CONFIG", "WPCONF_PATH", "WPCONF_PHP", "WPCONF_PHP_TIMEOUT",
                 "WPCONF_SALT_URL", "WPCONF_HTTP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def run(config_file, *args):
    return main(["--path", str(config_file), *args], context=StaticContext())


class TestReadCommands:
    """path, has, get and list."""

    def test_path(self, config_file, capsys):
        assert run(config_file, "path") == 0
        assert capsys.readouterr().out.strip() == str(config_file)

    def test_path_discovery(self, config_file, capsys):
        assert main(["path"]) == 0
        assert capsys.readouterr().out.strip() == str(config_file.resolve())

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--path", str(tmp_path / "nope.php"), "path"]) == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_has(self, config_file):
        assert run(config_file, "has", "DB_NAME") == 0
        assert run(config_file, "has", "table_prefix", "--type", "variable") == 0
        assert run(config_file, "has", "WP_HOME") == 1

    def test_get(self, config_file, capsys):
        assert run(config_file, "get", "DB_NAME") == 0
        assert capsys.readouterr().out == "wordpress\n"

    def test_get_json(self, config_file, capsys):
        assert run(config_file, "get", "WP_DEBUG", "--format", "json") == 0
        assert capsys.readouterr().out == "false\n"

    def test_get_missing_with_suggestion(self, config_file, capsys):
        assert run(config_file, "get", "DB_HOTS") == 1
        assert "Did you mean 'DB_HOST'?" in capsys.readouterr().err

    def test_list_json(self, config_file, capsys):
        assert run(config_file, "list", "DB_", "--format", "json", "--fields", "name,value") == 0
        assert json.loads(capsys.readouterr().out) == [
            {"name": "DB_NAME", "value": "wordpress"},
            {"name": "DB_HOST", "value": "localhost"},
        ]

    def test_list_variables_first(self, config_file, capsys):
        assert run(config_file, "list", "--format", "csv", "--fields", "name") == 0
        assert capsys.readouterr().out.split() == ["name", "table_prefix", "DB_NAME", "DB_HOST", "WP_DEBUG"]

    def test_list_strict_needs_filter(self, config_file, capsys):
        assert run(config_file, "list", "--strict") == 1
        assert "--strict" in capsys.readouterr().err

    def test_list_no_match(self, config_file):
        assert run(config_file, "list", "NOTHING") == 1


class TestSet:
    """The set command."""

    def test_update(self, config_file, capsys):
        assert run(config_file, "set", "DB_NAME", "blog") == 0
        assert capsys.readouterr().out == (
            "Success: Updated the constant 'DB_NAME' in the 'wp-config.php' file with the value 'blog'.\n"
        )
        assert "define( 'DB_NAME', 'blog' );" in config_file.read_text()

    def test_add_needs_type(self, config_file, example_text, capsys):
        assert run(config_file, "set", "WP_HOME", "https://example.com") == 1
        assert "Specify an explicit --type=<type> to add." in capsys.readouterr().err
        assert config_file.read_text() == example_text

    def test_add_constant(self, config_file, capsys):
        assert run(config_file, "set", "WP_DEBUG_LOG", "true", "--type", "constant", "--raw") == 0
        assert capsys.readouterr().out == (
            "Success: Added the constant 'WP_DEBUG_LOG' to the 'wp-config.php' file with the raw value 'true'.\n"
        )
        assert "define('WP_DEBUG_LOG', true);\n/* That's all" in config_file.read_text()

    def test_no_add(self, config_file, example_text):
        assert run(config_file, "set", "WP_HOME", "x", "--type", "constant", "--no-add") == 1
        assert config_file.read_text() == example_text

    def test_anchor_options(self, config_file):
        args = ["set", "custom", "1", "--type", "variable", "--raw",
                "--anchor", "$table_prefix", "--placement", "after", "--separator", "\\n\\n"]
        assert run(config_file, *args) == 0
        assert "$table_prefix = 'wp_';\n$custom = 1;\n\n" in config_file.read_text()

    def test_missing_anchor(self, config_file, capsys):
        assert run(config_file, "set", "X", "1", "--type", "constant", "--anchor", "nowhere") == 1
        err = capsys.readouterr().err
        assert "Could not process the 'wp-config.php' transformation." in err
        assert "nowhere" in err


class TestDelete:
    """The delete command."""

    def test_delete(self, config_file, example_text, capsys):
        assert run(config_file, "delete", "DB_HOST") == 0
        assert "Deleted the constant 'DB_HOST'" in capsys.readouterr().out
        assert config_file.read_text() == example_text.replace("define( 'DB_HOST', 'localhost' );\n", "")

    def test_delete_missing(self, config_file, capsys):
        assert run(config_file, "delete", "WP_HOME", "--type", "constant") == 1
        assert "The constant 'WP_HOME' is not defined" in capsys.readouterr().err


class TestOtherCommands:
    """edit, shuffle-salts and create."""

    def test_shuffle_salts(self, config_file):
        assert run(config_file, "shuffle-salts") == 0
        assert "put your unique phrase here" not in config_file.read_text()

    def test_edit(self, config_file, monkeypatch):
        def fake_editor(command):
            with open(command[-1], "a", encoding="utf-8") as fh:
                fh.write("// edited\n")
            return 0

        monkeypatch.setenv("EDITOR", "fake-editor --wait")
        monkeypatch.delenv("VISUAL", raising=False)
        monkeypatch.setattr("wpconf.cli.subprocess.call", fake_editor)
        assert run(config_file, "edit") == 0
        assert config_file.read_text().endswith("// edited\n")

    def test_edit_without_changes(self, config_file, example_text, monkeypatch, capsys):
        monkeypatch.setattr("wpconf.cli.subprocess.call", lambda command: 0)
        assert run(config_file, "edit") == 0
        assert "No changes made" in capsys.readouterr().err
        assert config_file.read_text() == example_text

    def test_create(self, tmp_path, capsys):
        target = tmp_path / "site" / "wp-config.php"
        target.parent.mkdir()
        args = ["--path", str(target), "create", "--dbname", "blog", "--dbuser", "admin", "--skip-salts"]
        assert main(args) == 0
        assert "Generated 'wp-config.php' file." in capsys.readouterr().out
        text = target.read_text()
        assert "define( 'DB_NAME', 'blog' );" in text
        assert "AUTH_KEY" not in text

    def test_create_existing(self, config_file, capsys):
        assert main(["--path", str(config_file), "create", "--dbname", "a", "--dbuser", "b"]) == 1
        assert "already exists" in capsys.readouterr().err

"""
Tests for layered tool settings.
"""

import pytest

from wpconf.errors import WPConfigError
from wpconf.model import Placement
from wpconf.settings import Settings, load_settings


def test_defaults(tmp_path):
    settings = load_settings(environ={}, cwd=tmp_path)
    assert settings == Settings()
    assert settings.anchor_spec().placement is Placement.BEFORE


def test_yaml_file_in_working_directory(tmp_path):
    (tmp_path / "wpconf.yml").write_text("php_binary: /usr/bin/php8.2\nplacement: after\nphp_timeout: 5\n")
    settings = load_settings(environ={}, cwd=tmp_path)
    assert settings.php_binary == "/usr/bin/php8.2"
    assert settings.php_timeout == 5.0
    assert settings.anchor_spec().placement is Placement.AFTER


def test_environment_overrides_file(tmp_path):
    settings_file = tmp_path / "custom.yml"
    settings_file.write_text("php_binary: from-file\nsalt_url: https://file.example/\n")
    environ = {"WPCONF_CONFIG": str(settings_file), "WPCONF_PHP": "from-env"}
    settings = load_settings(environ=environ, cwd=tmp_path)
    assert settings.php_binary == "from-env"
    assert settings.salt_url == "https://file.example/"


def test_explicit_path_wins_over_environment_file(tmp_path):
    explicit = tmp_path / "explicit.yml"
    explicit.write_text("anchor: '// custom anchor'\n")
    other = tmp_path / "other.yml"
    other.write_text("anchor: '// other'\n")
    settings = load_settings(explicit, environ={"WPCONF_CONFIG": str(other)}, cwd=tmp_path)
    assert settings.anchor == "// custom anchor"


def test_unknown_key(tmp_path):
    (tmp_path / "wpconf.yml").write_text("php_binray: php\n")
    with pytest.raises(WPConfigError) as excinfo:
        load_settings(environ={}, cwd=tmp_path)
    assert "php_binray" in str(excinfo.value)


def test_bad_timeout(tmp_path):
    with pytest.raises(WPConfigError):
        load_settings(environ={"WPCONF_PHP_TIMEOUT": "soon"}, cwd=tmp_path)


def test_bad_placement(tmp_path):
    (tmp_path / "wpconf.yml").write_text("placement: middle\n")
    with pytest.raises(WPConfigError):
        load_settings(environ={}, cwd=tmp_path)


def test_not_a_mapping(tmp_path):
    (tmp_path / "wpconf.yml").write_text("- php\n")
    with pytest.raises(WPConfigError):
        load_settings(environ={}, cwd=tmp_path)

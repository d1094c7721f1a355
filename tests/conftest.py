"""Shared fixtures for wpconf tests."""

import pytest

from wpconf.examples import build_example_config


@pytest.fixture
def example_text():
    return build_example_config()


@pytest.fixture
def config_file(tmp_path, example_text):
    path = tmp_path / "wp-config.php"
    path.write_bytes(example_text.encode("utf-8"))
    return path

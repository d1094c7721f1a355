"""
Tests for secret key generation and salt shuffling.
"""

import pytest
import requests

from wpconf.errors import KeyGenerationError
from wpconf.keys import (
    KEY_CHARS,
    SALT_CONSTANTS,
    SecretResult,
    fetch_remote_secrets,
    generate_salts,
    generate_secret,
    shuffle_salts,
)
from wpconf.model import Kind
from wpconf.transformer import ConfigTransformer

SERVICE_BODY = "\n".join(
    f"define('{name}',{' ' * (17 - len(name))}'remote-{i}');" for i, name in enumerate(SALT_CONSTANTS)
) + "\n"


class FakeResponse:
    def __init__(self, status_code=200, text=SERVICE_BODY):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests; records every call."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def failing_generator():
    return SecretResult(error="no entropy")


class TestGenerateSecret:
    """Local generation."""

    def test_length_and_alphabet(self):
        result = generate_secret()
        assert result.ok
        assert len(result.secret) == 64
        assert set(result.secret) <= set(KEY_CHARS)

    def test_unavailable_source(self):
        def broken_choice(chars):
            raise NotImplementedError("no urandom")

        result = generate_secret(choice=broken_choice)
        assert not result.ok
        assert "no urandom" in result.error
        with pytest.raises(KeyGenerationError):
            result.unwrap()


class TestFetchRemoteSecrets:
    """The WordPress.org secret-key service."""

    def test_parses_define_lines(self):
        session = FakeSession()
        secrets = fetch_remote_secrets("https://salts.example/", session=session, timeout=5)
        assert secrets == [f"remote-{i}" for i in range(len(SALT_CONSTANTS))]
        assert session.calls == [("https://salts.example/", 5)]

    def test_http_error(self):
        with pytest.raises(KeyGenerationError) as excinfo:
            fetch_remote_secrets(session=FakeSession(FakeResponse(status_code=503)))
        assert "HTTP code 503" in str(excinfo.value)

    def test_network_error(self):
        session = FakeSession(error=requests.exceptions.ConnectionError("offline"))
        with pytest.raises(KeyGenerationError):
            fetch_remote_secrets(session=session)

    def test_unexpected_body(self):
        with pytest.raises(KeyGenerationError):
            fetch_remote_secrets(session=FakeSession(FakeResponse(text="<html>maintenance</html>")))


class TestGenerateSalts:
    """One secret per name with remote fallback."""

    def test_local(self):
        session = FakeSession()
        salts = generate_salts(session=session)
        assert list(salts) == list(SALT_CONSTANTS)
        assert len(set(salts.values())) == len(SALT_CONSTANTS)
        assert session.calls == []

    def test_falls_back_to_remote(self):
        salts = generate_salts(generator=failing_generator, session=FakeSession())
        assert salts["AUTH_KEY"] == "remote-0"
        assert salts["NONCE_SALT"] == "remote-7"

    def test_both_sources_fail(self):
        session = FakeSession(FakeResponse(status_code=500))
        with pytest.raises(KeyGenerationError):
            generate_salts(generator=failing_generator, session=session)

    def test_short_remote_answer_is_an_error(self):
        body = "define('AUTH_KEY', 'a');\ndefine('SECURE_AUTH_KEY', 'b');\n"
        session = FakeSession(FakeResponse(text=body))
        with pytest.raises(KeyGenerationError, match="got 2"):
            generate_salts(generator=failing_generator, session=session)

    def test_remote_names_limit_the_fallback(self):
        names = SALT_CONSTANTS + ("WP_CACHE_KEY_SALT",)
        salts = generate_salts(names, generator=failing_generator, session=FakeSession(),
                               remote_names=SALT_CONSTANTS)
        assert list(salts) == list(SALT_CONSTANTS)


class TestShuffleSalts:
    """Writing new salts into a config file."""

    def test_updates_and_adds(self, config_file):
        salts = {"AUTH_KEY": "new-auth", "LOGGED_IN_KEY": "new-logged-in"}
        transformer = ConfigTransformer(config_file)
        assert shuffle_salts(transformer, salts) == salts

        text = config_file.read_text()
        assert "define( 'AUTH_KEY',         'new-auth' );" in text
        assert "define('LOGGED_IN_KEY', 'new-logged-in');\n/* That's all" in text
        assert transformer.find(Kind.CONSTANT, "SECURE_AUTH_KEY").value == "put your unique phrase here"

    def test_generated_salts(self, config_file):
        transformer = ConfigTransformer(config_file)
        salts = shuffle_salts(transformer)
        for name in SALT_CONSTANTS:
            assert transformer.find(Kind.CONSTANT, name).value == salts[name]

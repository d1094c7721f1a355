"""
Secret keys and salts for wp-config.php.

Secrets come from the local CSPRNG. When that source is unavailable the
caller may fall back to the WordPress.org secret-key service, which
returns a block of ready-made define() lines.

Local generation returns a SecretResult instead of raising, so the
fallback is an explicit decision of the caller.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

import requests

from wpconf import locator
from wpconf.errors import KeyGenerationError
from wpconf.model import Kind, TransformOptions

logger = logging.getLogger(__name__)

KEY_CHARS = (
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    "!@#$%^&*()-_ []{}<>~`+=,.;:/?|"
)
KEY_LENGTH = 64
SALT_URL = "https://api.wordpress.org/secret-key/1.1/salt/"

SALT_CONSTANTS = (
    "AUTH_KEY",
    "SECURE_AUTH_KEY",
    "LOGGED_IN_KEY",
    "NONCE_KEY",
    "AUTH_SALT",
    "SECURE_AUTH_SALT",
    "LOGGED_IN_SALT",
    "NONCE_SALT",
)


@dataclass(frozen=True)
class SecretResult:
    """
    Outcome of local secret generation.

    Exactly one of `secret` and `error` is set.
    """

    secret: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.secret is not None

    def unwrap(self) -> str:
        if self.secret is None:
            raise KeyGenerationError(self.error or "Secret generation failed.")
        return self.secret


def generate_secret(length: int = KEY_LENGTH,
                    choice: Callable[[str], str] = secrets.choice) -> SecretResult:
    """Generate a random key from KEY_CHARS using a cryptographically secure source."""
    try:
        return SecretResult(secret="".join(choice(KEY_CHARS) for _ in range(length)))
    except (NotImplementedError, OSError) as exc:
        logger.warning("Secure random source unavailable: %s", exc)
        return SecretResult(error=f"Secure random source unavailable: {exc}")


def fetch_remote_secrets(url: str = SALT_URL, session=None, timeout: float = 30) -> List[str]:
    """
    Fetch secrets from the WordPress.org secret-key service.

    The service answers with one define() line per key. Values are
    returned in the order the lines appear.

    Args:
        url: Service URL
        session: Optional requests-compatible session (for testing/mocking)
        timeout: Request timeout in seconds

    Raises:
        KeyGenerationError: Network failure, non-200 answer, or no secrets
    """
    client = session if session is not None else requests
    try:
        response = client.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        raise KeyGenerationError(f"Couldn't fetch response from {url} ({exc}).") from exc

    if response.status_code != 200:
        raise KeyGenerationError(
            f"Couldn't fetch response from {url} (HTTP code {response.status_code}).",
            context={"url": url, "status_code": response.status_code},
        )

    secrets_found: List[str] = []
    for line in response.text.splitlines():
        if not line.strip():
            continue
        name = line.split("'")[1] if line.count("'") >= 2 else None
        definition = locator.find("<?php\n" + line, Kind.CONSTANT, name) if name else None
        if definition is None:
            logger.debug("Ignoring unexpected secret-key line: %r", line)
            continue
        secrets_found.append(definition.value.strip())

    if not secrets_found:
        raise KeyGenerationError(f"No secrets found in the response from {url}.", context={"url": url})
    return secrets_found


def generate_salts(names: Sequence[str] = SALT_CONSTANTS, *,
                   generator: Callable[[], SecretResult] = generate_secret,
                   url: str = SALT_URL, session=None, timeout: float = 30,
                   remote_names: Optional[Sequence[str]] = None) -> Dict[str, str]:
    """
    One fresh secret per name.

    Local generation is tried first; the remote service is used only
    when a local result reports failure. The service only knows the eight
    standard keys, so a fallback result covers `remote_names` (default:
    all of `names`).

    Raises:
        KeyGenerationError: Both sources failed, or the remote service
            returned fewer secrets than names
    """
    generated: Dict[str, str] = {}
    for name in names:
        result = generator()
        if not result.ok:
            break
        generated[name] = result.secret.strip()
    else:
        return generated

    logger.info("Falling back to %s for secret keys", url)
    wanted = list(names if remote_names is None else remote_names)
    remote = fetch_remote_secrets(url, session=session, timeout=timeout)
    if len(remote) < len(wanted):
        raise KeyGenerationError(
            f"Expected {len(wanted)} secrets from {url}, got {len(remote)}.",
            context={"url": url, "expected": len(wanted), "received": len(remote)},
        )
    return dict(zip(wanted, remote))


def shuffle_salts(transformer, salts: Optional[Dict[str, str]] = None, **kwargs) -> Dict[str, str]:
    """
    Replace the authentication keys and salts in a config file.

    Each constant is updated in place, or added at the default anchor
    when missing. Extra keyword arguments go to generate_salts.

    Returns:
        The name -> secret mapping that was written
    """
    salts = salts if salts is not None else generate_salts(**kwargs)
    for name, secret in salts.items():
        transformer.update(Kind.CONSTANT, name, secret, TransformOptions())
    logger.info("Shuffled %d salt keys in %s", len(salts), transformer.path)
    return salts

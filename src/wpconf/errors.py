"""
Exception taxonomy for wpconf.

Every component raises one of these and never prints or exits.
The command line turns them into messages and exit codes.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class WPConfigError(Exception):
    """Base exception for wpconf."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class AmbiguousKindError(WPConfigError):
    """Raised when both a constant and a variable match and no kind was given."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Found both a constant and a variable '{name}' in the 'wp-config.php' file. "
            "Use --type=<type> to disambiguate.",
            context={"name": name},
        )
        self.name = name


class NotFoundError(WPConfigError, LookupError):
    """Raised when the requested name/kind has no definition."""

    def __init__(self, name: str, kind_label: str = "constant or variable", *,
                 suggestion: Optional[str] = None) -> None:
        message = f"The {kind_label} '{name}' is not defined in the 'wp-config.php' file."
        if suggestion:
            message += f"\nDid you mean '{suggestion}'?"
        WPConfigError.__init__(
            self, message, context={"name": name, "kind": kind_label, "suggestion": suggestion}
        )
        LookupError.__init__(self, message)
        self.name = name
        self.suggestion = suggestion


class AnchorNotFoundError(WPConfigError):
    """Raised when an insertion is requested but the anchor line is missing."""

    def __init__(self, marker_text: str) -> None:
        super().__init__(
            f"Unable to locate placement anchor '{marker_text}'.",
            context={"anchor": marker_text},
        )
        self.marker_text = marker_text


class ExecutionFailedError(WPConfigError, RuntimeError):
    """Raised when the config file cannot be executed for introspection."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        WPConfigError.__init__(self, message, context=context)
        RuntimeError.__init__(self, message)


class ConfigIOError(WPConfigError, OSError):
    """Raised when the config file cannot be read or written."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        WPConfigError.__init__(self, message, context=context)
        OSError.__init__(self, message)


class ConfigChangedError(ConfigIOError):
    """Raised when the file changed on disk between read and write."""


class KeyGenerationError(WPConfigError):
    """Raised when neither the local random source nor the remote service yields secrets."""

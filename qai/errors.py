"""Exception types used across qai.

The CLI catches :class:`QaiError` and reports it on standard error,
so anything the user can fix (bad configuration, missing API key,
unreachable endpoint) should be raised as one of these.
"""

from __future__ import annotations

from typing import Iterable, List


class QaiError(Exception):
    """Base class for all qai specific errors."""


class ConfigurationError(QaiError):
    """Raised when the configuration file or key bindings are invalid."""


class UnknownKeyError(ConfigurationError):
    """Raised when a key name has no known escape sequence."""

    def __init__(self, name: str, valid_names: Iterable[str]) -> None:
        self.name = name
        self.valid_names: List[str] = list(valid_names)
        super().__init__(
            f"Unknown key '{name}'. Valid keys: {', '.join(self.valid_names)}"
        )


class ApiError(QaiError):
    """Raised when the chat-completion endpoint fails to produce a reply."""


class ApiValidationError(QaiError):
    """Raised when the reachability/credential probe fails.

    ``kind`` is one of ``not_configured``, ``invalid_key``,
    ``access_denied``, ``network`` or ``unexpected``.
    """

    PREFIXES = {
        "not_configured": "",
        "invalid_key": "Invalid API key: ",
        "access_denied": "Access denied: ",
        "network": "Network error: ",
        "unexpected": "Unexpected error: ",
    }

    def __init__(self, kind: str, message: str = "") -> None:
        self.kind = kind
        if kind == "not_configured" and not message:
            message = (
                "API key not configured. Set QAI_API_KEY environment variable "
                "or add to config."
            )
        super().__init__(self.PREFIXES.get(kind, "") + message)


class FetchError(QaiError):
    """Raised when the command-generation process fails or returns nothing."""


class FetchTimeout(FetchError):
    """Raised when the command-generation process exceeds its timeout."""


class CacheError(QaiError):
    """Raised when the tool cache cannot be written."""

"""Error kinds raised by the relay backend adapter and configuration loader."""
from __future__ import annotations


class RelayNavError(Exception):
    """Base class for all relaynav failures."""


class BackendError(RelayNavError):
    """The relay-control backend could not satisfy a request."""


class BackendUnavailable(BackendError):
    """The control executable could not be invoked (missing, not executable, timed out)."""


class BackendCommandFailed(BackendError):
    """The control executable ran but returned a failure status."""

    def __init__(self, message: str, output_lines: list[str] | None = None):
        super().__init__(message)
        self.output_lines = list(output_lines or [])


class OutputDecodeError(BackendError):
    """Backend output is not valid UTF-8 text."""


class OutputParseError(BackendError):
    """Backend output does not match the expected listing grammar."""


class ConfigError(RelayNavError):
    """Configuration source is invalid or unreadable."""

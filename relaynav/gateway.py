"""Relay-control backend contract and the `mullvad` CLI adapter.

The navigator only talks to a `RelayControlGateway`. `MullvadGateway` is the
production implementation; tests substitute a scripted fake.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Protocol

from .errors import (
    BackendCommandFailed,
    BackendUnavailable,
    OutputDecodeError,
    OutputParseError,
)

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a connect/disconnect call as reported by the backend."""

    success: bool
    output_lines: list[str] = field(default_factory=list)


class RelayControlGateway(Protocol):
    def list_countries(self) -> list[str]: ...

    def list_cities(self, country: str) -> list[str]: ...

    def get_status(self) -> bool: ...

    def set_location_and_connect(self, country: str, city: str) -> CommandResult: ...

    def disconnect(self) -> CommandResult: ...


# ═══════════════════════════════════════════════════════════════════════════════
# LISTING PARSER
# ═══════════════════════════════════════════════════════════════════════════════

def _is_country_line(line: str) -> bool:
    return "(" in line and not line.startswith(("\t", " ")) and bool(line.strip())


def _is_city_line(line: str) -> bool:
    # Exactly one tab: deeper lines are individual relay hosts.
    return (
        line.startswith("\t")
        and not line.startswith("\t\t")
        and "(" in line
        and ")" in line
    )


def parse_countries(text: str) -> list[str]:
    """Extract country entries (`"<Name> (<code>)"`) from `relay list` output.

    Raises:
        OutputParseError: the text holds no country entry at all.
    """
    countries = [line.strip() for line in text.splitlines() if _is_country_line(line)]
    if not countries:
        raise OutputParseError("No country entries found in relay listing")
    return countries


def parse_cities(text: str, country: str) -> list[str]:
    """Extract the city entries listed under `country`.

    Raises:
        OutputParseError: `country` does not appear in the listing.
    """
    lines = text.splitlines()
    wanted = country.strip()

    for i, line in enumerate(lines):
        if _is_country_line(line) and line.strip() == wanted:
            start = i + 1
            break
    else:
        raise OutputParseError(f"Country {country!r} not found in relay listing")

    cities: list[str] = []
    for line in lines[start:]:
        if _is_country_line(line):
            break
        if _is_city_line(line):
            cities.append(line.strip())
    return cities


def location_code(entry: str) -> str:
    """Return the code inside the trailing parentheses of a display string.

    `"Sweden (se)"` -> `"se"`; `"Gothenburg (got) @ 57.7°N"` -> `"got"`.
    """
    start = entry.find("(")
    end = entry.find(")", start + 1)
    if start < 0 or end < 0:
        raise OutputParseError(f"No location code in {entry!r}")
    code = entry[start + 1:end].strip()
    if not code:
        raise OutputParseError(f"Empty location code in {entry!r}")
    return code


def city_code(country: str, city: str) -> str:
    """Return the bare city code, dropping a `"<country>-"` prefix if present."""
    c_code = location_code(country)
    code = location_code(city)
    prefix = f"{c_code}-"
    if code.startswith(prefix) and len(code) > len(prefix):
        return code[len(prefix):]
    return code


def parse_status(text: str) -> bool:
    """`mullvad status` prints "Connected ..." only when the tunnel is up."""
    return text.strip().startswith("Connected")


# ═══════════════════════════════════════════════════════════════════════════════
# SUBPROCESS ADAPTER
# ═══════════════════════════════════════════════════════════════════════════════

class MullvadGateway:
    """Drive the `mullvad` CLI (or a compatible executable) via subprocess."""

    def __init__(self, binary: str = "mullvad", timeout_sec: float | None = None):
        self.binary = binary
        self.timeout_sec = timeout_sec

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.binary, *args]
        logger.debug("Running backend command: %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout_sec,
                check=False,
            )
        except FileNotFoundError as e:
            raise BackendUnavailable(f"'{self.binary}' not found; is the Mullvad CLI installed?") from e
        except subprocess.TimeoutExpired as e:
            raise BackendUnavailable(
                f"'{' '.join(cmd)}' did not finish within {self.timeout_sec}s"
            ) from e
        except OSError as e:
            raise BackendUnavailable(f"Cannot execute '{self.binary}': {e}") from e

    @staticmethod
    def _decode(raw: bytes | None, cmd: str) -> str:
        try:
            return (raw or b"").decode("utf-8")
        except UnicodeDecodeError as e:
            raise OutputDecodeError(f"Output of '{cmd}' is not valid UTF-8") from e

    def _lines(self, proc: subprocess.CompletedProcess, cmd: str) -> list[str]:
        lines = self._decode(proc.stdout, cmd).splitlines()
        if proc.returncode != 0:
            lines += self._decode(proc.stderr, cmd).splitlines()
        return [line for line in lines if line.strip()]

    def _checked_text(self, *args: str) -> str:
        cmd = " ".join(args)
        proc = self._run(*args)
        if proc.returncode != 0:
            lines = self._lines(proc, cmd)
            logger.warning("Backend command '%s' failed (exit %s)", cmd, proc.returncode)
            raise BackendCommandFailed(
                f"'{self.binary} {cmd}' exited with status {proc.returncode}",
                output_lines=lines,
            )
        return self._decode(proc.stdout, cmd)

    def relay_list(self) -> str:
        return self._checked_text("relay", "list")

    def list_countries(self) -> list[str]:
        return parse_countries(self.relay_list())

    def list_cities(self, country: str) -> list[str]:
        return parse_cities(self.relay_list(), country)

    def get_status(self) -> bool:
        return parse_status(self._checked_text("status"))

    def set_location_and_connect(self, country: str, city: str) -> CommandResult:
        args = ("relay", "set", "location", location_code(country), city_code(country, city))
        proc = self._run(*args)
        lines = self._lines(proc, " ".join(args))
        if proc.returncode != 0:
            logger.warning("Setting location %s/%s failed (exit %s)", country, city, proc.returncode)
            return CommandResult(success=False, output_lines=lines)

        proc = self._run("connect")
        lines += self._lines(proc, "connect")
        if proc.returncode != 0:
            logger.warning("Connect failed (exit %s)", proc.returncode)
        return CommandResult(success=proc.returncode == 0, output_lines=lines)

    def disconnect(self) -> CommandResult:
        proc = self._run("disconnect")
        lines = self._lines(proc, "disconnect")
        if proc.returncode != 0:
            logger.warning("Disconnect failed (exit %s)", proc.returncode)
        return CommandResult(success=proc.returncode == 0, output_lines=lines)

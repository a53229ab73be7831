from __future__ import annotations

import os
import sys

import pytest


def _ensure_project_root_on_path() -> None:
    # When running via the venv's pytest entrypoint, the CWD is not guaranteed to
    # be on sys.path. Ensure the repository root (containing `relaynav/`) is importable.
    project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


_ensure_project_root_on_path()

from relaynav.errors import BackendUnavailable, OutputParseError  # noqa: E402
from relaynav.gateway import CommandResult  # noqa: E402


LISTING = {
    "Sweden (se)": ["Stockholm (se-sto)", "Malmo (se-mma)", "Gothenburg (se-got)"],
    "Germany (de)": ["Berlin (de-ber)", "Frankfurt (de-fra)"],
    "France (fr)": ["Paris (fr-par)"],
}


class FakeGateway:
    """Scripted RelayControlGateway that records every call."""

    def __init__(self, listing: dict[str, list[str]] | None = None, connected: bool = False):
        self.listing = dict(LISTING if listing is None else listing)
        self.connected = connected
        self.calls: list[tuple] = []
        self.fail: set[str] = set()
        self.connect_result: CommandResult | None = None
        self.disconnect_result: CommandResult | None = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise BackendUnavailable(f"{name} unavailable")

    def list_countries(self) -> list[str]:
        self._record("list_countries")
        return list(self.listing)

    def list_cities(self, country: str) -> list[str]:
        self._record("list_cities", country)
        if country not in self.listing:
            raise OutputParseError(f"Country {country!r} not found in relay listing")
        return list(self.listing[country])

    def get_status(self) -> bool:
        self._record("get_status")
        return self.connected

    def set_location_and_connect(self, country: str, city: str) -> CommandResult:
        self._record("set_location_and_connect", country, city)
        if self.connect_result is not None:
            return self.connect_result
        return CommandResult(True, [f"Connected to {city}"])

    def disconnect(self) -> CommandResult:
        self._record("disconnect")
        if self.disconnect_result is not None:
            return self.disconnect_result
        return CommandResult(True, ["Disconnected"])

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()

"""Unit tests for the Router event loop, key translation and rendering."""
from __future__ import annotations

import sys
from io import StringIO
from types import SimpleNamespace

import pytest
import readchar
from rich.console import Console

from relaynav.settings import ColorTheme
from relaynav.tui.components import render_error, render_navigator, visible_range
from relaynav.tui.keys import translate_keys
from relaynav.tui.navigator import Navigator
from relaynav.tui.router import Router
from relaynav.tui.state import InputMode, View


def _console() -> Console:
    return Console(file=StringIO(), force_terminal=False, width=100, height=24)


@pytest.fixture
def router_components(gateway):
    """Create router components for testing."""
    console = _console()
    nav = Navigator.start(gateway)
    keys: list[str] = []

    def _read_key() -> str:
        if not keys:
            raise EOFError
        return keys.pop(0)

    router = Router(
        console=console,
        settings=SimpleNamespace(),
        theme=ColorTheme(),
        nav=nav,
        read_key=_read_key,
    )
    return router, nav, keys


@pytest.mark.parametrize(
    "raw, expected",
    [
        (readchar.key.ENTER, ["enter"]),
        ("\r", ["enter"]),
        ("\n", ["enter"]),
        (readchar.key.ESC, ["esc"]),
        (readchar.key.BACKSPACE, ["backspace"]),
        (readchar.key.UP, ["up"]),
        (readchar.key.DOWN, ["down"]),
        ("j", ["j"]),
        ("G", ["G"]),
        ("/", ["/"]),
        ("\x1bj", ["esc", "j"]),
        ("\x1b\x1b", ["esc", "esc"]),
        ("\x1b\x01", ["esc"]),
    ],
)
def test_translate_keys(raw, expected):
    assert translate_keys(raw) == expected


@pytest.mark.parametrize("raw", ["\x1bOP", "\x1b[24~", "\x01"])
def test_translate_keys_drops_unknown_sequences(raw):
    assert translate_keys(raw) == []


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX escape handling")
@pytest.mark.parametrize(
    "typed, expected",
    [
        ("\x1bj", ["esc", "j"]),
        ("\x1b\x1b", ["esc", "esc"]),
        ("\x1b[A", ["up"]),
    ],
)
def test_real_readkey_esc_sequences(monkeypatch, typed, expected):
    """Esc read through readchar.readkey() still reaches the navigator."""
    chars = iter(typed)
    monkeypatch.setattr("readchar._posix_read.readchar", lambda: next(chars))

    assert translate_keys(readchar.readkey()) == expected


def test_router_initialization(router_components):
    router, nav, _ = router_components
    assert router.nav is nav
    assert router.theme == ColorTheme()


def test_router_step_dispatches_keys(router_components):
    router, nav, _ = router_components

    router.step(readchar.key.DOWN)
    assert nav.countries.index == 1

    router.step("\x1bOP")
    assert nav.countries.index == 1

    router.step(readchar.key.ENTER)
    assert nav.view is View.CITIES


def test_router_step_esc_pair_leaves_search_then_moves(router_components):
    """Esc followed by j leaves Search with the filter kept, then moves down."""
    router, nav, _ = router_components
    for raw in ("/", "a", "n"):
        router.step(raw)
    assert nav.countries.items == ["Germany (de)", "France (fr)"]

    router.step("\x1bj")

    assert nav.mode is InputMode.NORMAL
    assert nav.search.query == "an"
    assert nav.countries.items == ["Germany (de)", "France (fr)"]
    assert nav.countries.index == 1


def test_router_step_esc_pair_quits(router_components):
    router, nav, _ = router_components

    router.step("\x1bj")

    assert nav.exit_requested is True
    assert nav.countries.index == 0


def test_router_run_stops_on_quit(router_components, gateway):
    router, nav, keys = router_components
    keys.extend(["j", readchar.key.ENTER, "q", "j"])

    router.run()

    assert nav.exit_requested is True
    assert nav.view is View.CITIES
    # The key after "q" is never read
    assert keys == ["j"]


def test_router_run_stops_at_end_of_input(router_components):
    router, nav, keys = router_components
    keys.extend(["j"])

    router.run()

    assert nav.exit_requested is False
    assert nav.countries.index == 1


def test_render_countries_frame(router_components):
    router, nav, _ = router_components
    nav.handle_key("j")

    console = Console(file=StringIO(), width=100, height=24, record=True)
    console.print(render_navigator(nav, ColorTheme(), height=24))
    text = console.export_text()

    assert "Disconnected" in text
    assert "❯ Germany (de)" in text
    assert "Sweden (se)" in text
    assert "Normal" in text


def test_render_search_and_error(router_components, gateway):
    router, nav, _ = router_components
    nav.handle_key("/")
    nav.handle_key("z")

    console = Console(file=StringIO(), width=100, height=24, record=True)
    console.print(render_navigator(nav, ColorTheme(), height=24))
    text = console.export_text()
    assert "Search: z" in text
    assert "No matches" in text

    nav.handle_key("backspace")
    nav.handle_key("esc")
    gateway.fail.add("list_cities")
    nav.handle_key("enter")

    console = Console(file=StringIO(), width=100, height=24, record=True)
    console.print(render_navigator(nav, ColorTheme(), height=24))
    assert "Could not load cities" in console.export_text()


def test_render_connection_frame(router_components):
    router, nav, _ = router_components
    nav.handle_key("enter")
    nav.handle_key("enter")

    console = Console(file=StringIO(), width=100, height=24, record=True)
    console.print(render_navigator(nav, ColorTheme(), height=24))
    text = console.export_text()

    assert "Connected" in text
    assert "Connected to Stockholm (se-sto)" in text


def test_visible_range_keeps_cursor_on_screen():
    assert visible_range(0, 0, 10) == (0, 0)
    assert visible_range(3, 5, 10) == (0, 5)
    assert visible_range(15, 40, 10) == (6, 16)
    assert visible_range(39, 40, 10) == (30, 40)


def test_render_error_shows_brackets_literally():
    """Square brackets in title, cause and action are text, not markup."""
    console = Console(file=StringIO(), width=120, record=True)

    render_error(
        console,
        "Bad [config]",
        "missing key [colors]",
        "Edit [/etc/relaynav/config.toml] or unset RELAYNAV_CONFIG",
    )
    text = console.export_text()

    assert "✗ Bad [config]" in text
    assert "Cause: missing key [colors]" in text
    assert "→ Edit [/etc/relaynav/config.toml] or unset RELAYNAV_CONFIG" in text

"""Main event loop: read a key, update the navigator, redraw."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

import readchar
from rich.live import Live

from .components import render_navigator
from .keys import translate_keys

if TYPE_CHECKING:
    from rich.console import Console
    from rich.panel import Panel

    from ..settings import ColorTheme, Settings
    from .navigator import Navigator

logger = logging.getLogger(__name__)


class Router:
    """Main navigation loop with key dispatch.

    The router owns the terminal: it reads one key at a time, hands it to the
    navigator and redraws once the key (and any backend call it triggered) has
    been fully processed.
    """

    def __init__(
        self,
        console: Console,
        settings: Settings,
        theme: ColorTheme,
        nav: Navigator,
        read_key: Callable[[], str] = readchar.readkey,
    ):
        """Initialize router with dependencies.

        Args:
            console: Rich Console for output
            settings: Application settings
            theme: Colour theme for rendering
            nav: Navigator instance
            read_key: Blocking key reader (replaced in tests)
        """
        self.console = console
        self.settings = settings
        self.theme = theme
        self.nav = nav
        self.read_key = read_key

    def render(self) -> Panel:
        return render_navigator(self.nav, self.theme, height=self.console.size.height)

    def step(self, raw: str) -> None:
        """Process one raw key sequence (which may carry two keys)."""
        for key in translate_keys(raw):
            if self.nav.exit_requested:
                break
            self.nav.handle_key(key)

    def run(self) -> None:
        """Run the main loop until the navigator requests exit.

        Ctrl+C and end of input also end the loop.
        """
        with Live(
            self.render(),
            console=self.console,
            screen=True,
            auto_refresh=False,
            transient=True,
        ) as live:
            while not self.nav.exit_requested:
                try:
                    raw = self.read_key()
                except (KeyboardInterrupt, EOFError):
                    logger.info("Interrupted")
                    break
                self.step(raw)
                live.update(self.render(), refresh=True)

        self.console.print("[dim]👋 Goodbye![/]")

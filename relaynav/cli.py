from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from .errors import BackendError, ConfigError
from .gateway import MullvadGateway, location_code
from .logging import setup_logging
from .settings import ColorTheme, Settings, load_settings, load_theme
from .tui.components import render_error, render_locations_table, render_result_panel

app = typer.Typer(
    add_completion=False,
    help="relaynav: browse relay locations and connect from the terminal",
    rich_markup_mode="rich",
)
console = Console()
logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def _gateway(settings: Settings) -> MullvadGateway:
    return MullvadGateway(
        binary=settings.RELAYNAV_BACKEND_BIN,
        timeout_sec=settings.RELAYNAV_BACKEND_TIMEOUT_SEC,
    )


def _settings_or_exit(verbose: bool = False) -> Settings:
    try:
        s = load_settings()
        setup_logging(s, console=verbose)
    except ConfigError as e:
        render_error(console, "Invalid configuration", str(e), "Check your RELAYNAV_* environment / .env")
        raise typer.Exit(code=1)
    except OSError as e:
        render_error(console, "Cannot set up logging", str(e), "Set RELAYNAV_LOG_DIR to a writable directory")
        raise typer.Exit(code=1)
    return s


def _theme_or_exit(config: Optional[Path], settings: Settings) -> ColorTheme:
    try:
        return load_theme(config or settings.RELAYNAV_CONFIG)
    except ConfigError as e:
        render_error(console, "Invalid theme", str(e), "Fix or remove the config file to use default colours")
        raise typer.Exit(code=1)


def _backend_error(settings: Settings, e: BackendError) -> None:
    render_error(
        console,
        "Relay backend error",
        str(e),
        f"Make sure '{settings.RELAYNAV_BACKEND_BIN}' is installed and the daemon is running",
    )
    raise typer.Exit(code=1)


def _resolve_entry(entries: list[str], query: str) -> str | None:
    """Find an entry by exact code, exact display string, or case-insensitive name prefix."""
    q = query.strip().casefold()
    for entry in entries:
        if entry.casefold() == q:
            return entry
    for entry in entries:
        try:
            code = location_code(entry).casefold()
        except BackendError:
            continue
        if code == q or code.split("-")[-1] == q:
            return entry
    for entry in entries:
        if entry.casefold().startswith(q):
            return entry
    return None


def _interactive(config: Optional[Path]) -> None:
    """Launch the full-screen navigator."""
    from .tui.navigator import Navigator
    from .tui.router import Router

    settings = _settings_or_exit()
    theme = _theme_or_exit(config, settings)

    console.print("[dim]Loading relay list...[/dim]")
    try:
        nav = Navigator.start(
            _gateway(settings),
            gesture_timeout=settings.RELAYNAV_GESTURE_TIMEOUT_SEC,
        )
    except BackendError as e:
        logger.error("Startup failed: %s", e)
        _backend_error(settings, e)

    router = Router(
        console=console,
        settings=settings,
        theme=theme,
        nav=nav,
    )

    try:
        router.run()
    except KeyboardInterrupt:
        console.print("\n[dim]👋 Interrupted. Goodbye![/]")


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Colour theme TOML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Also log to stderr (one-shot commands)"),
):
    ctx.obj = {"config": config, "verbose": verbose}
    if ctx.invoked_subcommand is None:
        _interactive(config)


@app.command("tui", help="Open the interactive navigator (default)")
def tui(ctx: typer.Context):
    _interactive((ctx.obj or {}).get("config"))


@app.command("locations", help="List countries, or the cities of one country")
def locations(
    ctx: typer.Context,
    country: Optional[str] = typer.Argument(None, help="Country code or name"),
):
    s = _settings_or_exit((ctx.obj or {}).get("verbose", False))
    gw = _gateway(s)
    try:
        countries = gw.list_countries()
        if country is None:
            render_locations_table(console, countries, f"Countries ({len(countries)})")
            return
        entry = _resolve_entry(countries, country)
        if entry is None:
            console.print(f"[yellow]Country not found:[/yellow] {escape(country)}")
            raise typer.Exit(code=1)
        cities = gw.list_cities(entry)
    except BackendError as e:
        _backend_error(s, e)
    render_locations_table(console, cities, f"{entry}: {len(cities)} cities")


@app.command("status", help="Show whether the tunnel is connected")
def status(ctx: typer.Context):
    s = _settings_or_exit((ctx.obj or {}).get("verbose", False))
    try:
        connected = _gateway(s).get_status()
    except BackendError as e:
        _backend_error(s, e)
    if connected:
        console.print("[green]●[/green] Connected")
    else:
        console.print("[red]●[/red] Disconnected")


@app.command("connect", help="Set the relay location and connect")
def connect(
    ctx: typer.Context,
    country: str = typer.Argument(..., help="Country code or name"),
    city: str = typer.Argument(..., help="City code or name"),
):
    s = _settings_or_exit((ctx.obj or {}).get("verbose", False))
    gw = _gateway(s)
    try:
        country_entry = _resolve_entry(gw.list_countries(), country)
        if country_entry is None:
            console.print(f"[yellow]Country not found:[/yellow] {escape(country)}")
            raise typer.Exit(code=1)
        city_entry = _resolve_entry(gw.list_cities(country_entry), city)
        if city_entry is None:
            console.print(f"[yellow]City not found in {escape(country_entry)}:[/yellow] {escape(city)}")
            raise typer.Exit(code=1)
        result = gw.set_location_and_connect(country_entry, city_entry)
    except BackendError as e:
        _backend_error(s, e)

    if result.success:
        render_result_panel(console, f"Connected to {city_entry}", result.output_lines)
    else:
        render_result_panel(console, f"Could not connect to {city_entry}", result.output_lines, is_error=True)
        raise typer.Exit(code=1)


@app.command("disconnect", help="Disconnect the tunnel")
def disconnect(ctx: typer.Context):
    s = _settings_or_exit((ctx.obj or {}).get("verbose", False))
    try:
        result = _gateway(s).disconnect()
    except BackendError as e:
        _backend_error(s, e)

    if result.success:
        render_result_panel(console, "Disconnected", result.output_lines)
    else:
        render_result_panel(console, "Disconnect failed", result.output_lines, is_error=True)
        raise typer.Exit(code=1)


def main():
    app()

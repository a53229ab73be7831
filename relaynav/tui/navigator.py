"""View state machine for the relay location navigator."""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from ..errors import BackendCommandFailed, BackendError
from .state import (
    ConnectionOutcome,
    InputMode,
    ListContext,
    SearchFilter,
    SelectionModel,
    View,
)

if TYPE_CHECKING:
    from ..gateway import RelayControlGateway

logger = logging.getLogger(__name__)


class Navigator:
    """Countries → Cities → Connection navigation driven by discrete keys.

    Owns every piece of navigator state:
    - Views cycle Countries → Cities → Connection → Countries
    - `h` ascends one tier, `D` disconnects from anywhere
    - Search mode filters the active tier as the user types
    - Backend failures are caught here; the view stays put and `error` is set

    Keys are abstract names: single characters, or one of
    "enter", "esc", "backspace", "up", "down".
    """

    # View to human-readable label mapping
    VIEW_LABELS = {
        View.COUNTRIES: "Countries",
        View.CITIES: "Cities",
        View.CONNECTION: "Connection",
    }

    def __init__(
        self,
        gateway: RelayControlGateway,
        gesture_timeout: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.view = View.COUNTRIES
        self.mode = InputMode.NORMAL

        self.countries = ListContext()
        self.cities = ListContext()
        self._country_source: list[str] = []
        self._city_source: list[str] = []
        # Country whose cities are currently loaded
        self.current_country: str | None = None

        self.search = SearchFilter()
        self.selection = SelectionModel(gesture_timeout=gesture_timeout, clock=clock)
        self.outcome = ConnectionOutcome()

        self.error: str | None = None
        self.exit_requested = False
        self._bind()

    @classmethod
    def start(cls, gateway: RelayControlGateway, **kwargs) -> Navigator:
        """Create a navigator with the country list and status loaded.

        Raises:
            BackendError: the backend cannot list countries or report status.
        """
        nav = cls(gateway, **kwargs)
        countries = gateway.list_countries()
        nav._country_source = list(countries)
        nav.countries = ListContext(list(countries))
        nav.outcome = ConnectionOutcome(connected=gateway.get_status())
        nav._bind()
        logger.info(
            "Navigator started with %d countries (connected=%s)",
            len(countries),
            nav.outcome.connected,
        )
        return nav

    # ─── queries ────────────────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self.outcome.connected

    def active_list(self) -> ListContext | None:
        """List shown in the current view, or None in the Connection view."""
        if self.view is View.COUNTRIES:
            return self.countries
        if self.view is View.CITIES:
            return self.cities
        return None

    def _active_source(self) -> list[str] | None:
        if self.view is View.COUNTRIES:
            return self._country_source
        if self.view is View.CITIES:
            return self._city_source
        return None

    def breadcrumbs(self) -> str:
        """Breadcrumb path like "Countries > Sweden (se)"."""
        parts = [self.VIEW_LABELS[View.COUNTRIES]]
        if self.view is not View.COUNTRIES and self.current_country:
            parts.append(self.current_country)
        if self.view is View.CONNECTION:
            parts.append(self.VIEW_LABELS[View.CONNECTION])
        return " > ".join(parts)

    # ─── key dispatch ───────────────────────────────────────────────────────

    def handle_key(self, key: str) -> None:
        """Process one key completely, including any backend call it triggers."""
        self.error = None
        if key != "g" or self.mode is InputMode.SEARCH:
            self.selection.cancel_gesture()

        if self.mode is InputMode.NORMAL:
            self._handle_normal(key)
        elif self.mode is InputMode.SEARCH:
            self._handle_search(key)

    def _handle_normal(self, key: str) -> None:
        if key in ("esc", "q"):
            self.exit_requested = True
        elif key == "enter":
            self.select()
        elif key == "D":
            self.disconnect()
        elif key in ("j", "down"):
            self.selection.move_down()
        elif key in ("k", "up"):
            self.selection.move_up()
        elif key == "G":
            self.selection.jump_last()
        elif key == "g":
            self.selection.press_g()
        elif key in ("/", "i"):
            self.mode = InputMode.SEARCH
        elif key == "h":
            self.ascend()

    def _handle_search(self, key: str) -> None:
        if key == "enter":
            # A failed transition leaves query, list and mode as they were
            if self.view is View.COUNTRIES:
                ok = self._enter_cities()
            elif self.view is View.CONNECTION:
                ok = self._enter_countries()
            else:
                ok = True
            if ok:
                self.mode = InputMode.NORMAL
                self.search.clear()
        elif key == "esc":
            # Filter stays applied
            self.mode = InputMode.NORMAL
        elif key == "backspace":
            self.search.pop()
        elif len(key) == 1 and key.isprintable():
            self.search.push(key)

    # ─── transitions ────────────────────────────────────────────────────────

    def select(self) -> None:
        """Enter in Normal mode: descend, connect, or go back to the start."""
        if self.view is View.COUNTRIES:
            self._enter_cities()
        elif self.view is View.CITIES:
            self._connect()
        elif self.view is View.CONNECTION:
            self._enter_countries()

    def ascend(self) -> None:
        """Go up one tier (`h`)."""
        if self.view is View.CITIES:
            self._return_to_countries()
        elif self.view is View.CONNECTION:
            self._return_to_cities()

    def disconnect(self) -> None:
        try:
            result = self.gateway.disconnect()
        except BackendError as e:
            self._fail("Disconnect failed", e)
            return

        self.outcome = ConnectionOutcome(
            connected=self.outcome.connected and not result.success,
            output_lines=list(result.output_lines),
        )
        if result.success:
            logger.info("Disconnected")
        else:
            self.error = "Disconnect failed"

    def _enter_cities(self) -> bool:
        country = self.countries.selected
        if country is None:
            self.error = "No country selected"
            return False
        try:
            cities = self.gateway.list_cities(country)
        except BackendError as e:
            self._fail(f"Could not load cities for {country}", e)
            return False

        self.search.clear()
        self.current_country = country
        self._load_cities(cities)
        self._set_view(View.CITIES)
        return True

    def _connect(self) -> None:
        city = self.cities.selected
        if self.current_country is None or city is None:
            self.error = "No city selected"
            return
        try:
            result = self.gateway.set_location_and_connect(self.current_country, city)
        except BackendError as e:
            self._fail(f"Could not connect to {city}", e)
            return

        self.outcome = ConnectionOutcome(
            connected=result.success,
            output_lines=list(result.output_lines),
        )
        if not result.success:
            logger.warning("Connect to %s / %s reported failure", self.current_country, city)
            self.error = f"Could not connect to {city}"
            return

        self.search.clear()
        self._set_view(View.CONNECTION)

    def _enter_countries(self) -> bool:
        try:
            countries = self.gateway.list_countries()
        except BackendError as e:
            self._fail("Could not load countries", e)
            return False

        self.search.clear()
        self._country_source = list(countries)
        self.countries = ListContext(list(countries))
        self.cities.index = 0
        self._set_view(View.COUNTRIES)
        return True

    def _return_to_countries(self) -> None:
        try:
            countries = self.gateway.list_countries()
        except BackendError as e:
            self._fail("Could not load countries", e)
            return

        self.search.clear()
        self._country_source = list(countries)
        self.countries.replace(countries, keep=self.current_country)
        self.cities.index = 0
        self._set_view(View.COUNTRIES)

    def _return_to_cities(self) -> None:
        if self.current_country is None:
            self.error = "No country selected"
            return
        try:
            cities = self.gateway.list_cities(self.current_country)
        except BackendError as e:
            self._fail(f"Could not load cities for {self.current_country}", e)
            return

        self.search.clear()
        self._load_cities(cities)
        self._set_view(View.CITIES)

    # ─── helpers ────────────────────────────────────────────────────────────

    def _load_cities(self, cities: list[str]) -> None:
        self._city_source = list(cities)
        self.cities = ListContext(list(cities))

    def _set_view(self, view: View) -> None:
        logger.info("View %s -> %s", self.view.value, view.value)
        self.view = view
        self._bind()

    def _bind(self) -> None:
        """Point selection and search at the list of the current view."""
        active = self.active_list()
        self.selection.context = active
        self.search.bind(active, self._active_source())

    def _fail(self, action: str, exc: BackendError) -> None:
        logger.warning("%s: %s", action, exc)
        self.error = f"{action}: {exc}"
        if isinstance(exc, BackendCommandFailed) and exc.output_lines:
            self.outcome = ConnectionOutcome(
                connected=self.outcome.connected,
                output_lines=list(exc.output_lines),
            )

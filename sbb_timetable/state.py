"""
Application state and the single state-transition function.

The event loop feeds every event (key press, resize, tick, fetch result)
through `update`, which mutates the UIState in place and may hand back a
command for the loop to carry out. `update` never blocks and never does
I/O itself.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from .config import (
    BORDER_SIZE, CARD_HEIGHT, CARD_MARGIN, DATE_CHAR_LIMIT, DATE_FIELD_WIDTH,
    HEADER_HEIGHT, HEADER_MIN_WIDTH, HEADER_PADDING, MIN_STATION_FIELD_WIDTH,
    RESULT_MARGIN, STATION_CHAR_LIMIT, STOPS_LINE_FIXED_WIDTH, STOPS_LINE_MIN_WIDTH,
    TIME_CHAR_LIMIT, TIME_FIELD_WIDTH, Config,
)
from .focus import HEADER_ORDER, FocusManager
from .inputs import InputField
from .masks import MASKS, MaskAction, apply_mask
from .models import Connection, SearchCriteria

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch connections. Check your internet connection."

NAVIGATION_KEYS = {"left", "right", "home", "end", "ctrl+a", "ctrl+e"}


class ValidationError(ValueError):
    """Search criteria are incomplete."""


# =============================================================================
# Events and commands
# =============================================================================


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class ResizeEvent:
    width: int
    height: int


@dataclass(frozen=True)
class TickEvent:
    pass


@dataclass(frozen=True)
class FetchResult:
    request_id: int
    connections: tuple[Connection, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class FetchCommand:
    criteria: SearchCriteria
    limit: int
    request_id: int


@dataclass(frozen=True)
class QuitCommand:
    pass


QUIT = QuitCommand()

Command = FetchCommand | QuitCommand | None


# =============================================================================
# State
# =============================================================================


def build_fields(now: datetime | None = None) -> dict[str, InputField]:
    """The four header inputs, keyed by identifier."""
    now = now or datetime.now()
    return {
        "from": InputField("from", placeholder="From", char_limit=STATION_CHAR_LIMIT),
        "to": InputField("to", placeholder="To", char_limit=STATION_CHAR_LIMIT),
        "date": InputField(
            "date", placeholder=now.strftime("%Y-%m-%d"),
            char_limit=DATE_CHAR_LIMIT, width=DATE_FIELD_WIDTH,
        ),
        "time": InputField(
            "time", placeholder=now.strftime("%H:%M"),
            char_limit=TIME_CHAR_LIMIT, width=TIME_FIELD_WIDTH,
        ),
    }


class UIState:
    """Everything the renderer needs; one instance for the program's lifetime."""

    def __init__(self, width: int = 0, height: int = 0, now: datetime | None = None,
                 limit: int | None = None):
        self.fields = build_fields(now)
        self.focus = FocusManager(HEADER_ORDER, self.fields)
        self.width = 0
        self.height = 0
        self.selected = 0
        self.connections: list[Connection] = []
        self.loading = False
        self.error: str | None = None
        self.searched = False
        self.is_arrival_time = False
        self.request_id = 0
        self.limit = limit
        self.resize(width, height)

    # Layout geometry

    def resize(self, width: int, height: int) -> None:
        self.width, self.height = width, height
        station_width = max((width - HEADER_PADDING - HEADER_MIN_WIDTH) // 2, MIN_STATION_FIELD_WIDTH)
        self.fields["from"].width = station_width
        self.fields["to"].width = station_width

    @property
    def content_width(self) -> int:
        return max(self.width - HEADER_PADDING, 0)

    @property
    def results_height(self) -> int:
        return max(self.height - HEADER_HEIGHT - HEADER_PADDING, 0)

    def max_visible_connections(self) -> int:
        return max(self.results_height // CARD_HEIGHT, 1)

    @property
    def result_box_width(self) -> int:
        return max(
            (self.width - CARD_MARGIN) // 2,
            RESULT_MARGIN + STOPS_LINE_MIN_WIDTH + STOPS_LINE_FIXED_WIDTH,
        )

    @property
    def detail_box_width(self) -> int:
        return max(self.width - BORDER_SIZE * 4 - self.result_box_width, 0)

    # Queries

    @property
    def selected_connection(self) -> Connection | None:
        if not self.connections:
            return None
        return self.connections[self.selected]

    def criteria(self) -> SearchCriteria:
        return SearchCriteria(
            station_from=self.fields["from"].value,
            station_to=self.fields["to"].value,
            date=self.fields["date"].value,
            time=self.fields["time"].value,
            is_arrival_time=self.is_arrival_time,
        )

    # Button actions

    def swap_stations(self) -> None:
        origin, destination = self.fields["from"].value, self.fields["to"].value
        self.fields["from"].set_value(destination)
        self.fields["to"].set_value(origin)

    def toggle_arrival_time(self) -> None:
        self.is_arrival_time = not self.is_arrival_time

    def select_previous(self) -> None:
        if self.connections and self.selected > 0:
            self.selected -= 1

    def select_next(self) -> None:
        if self.connections and self.selected < len(self.connections) - 1:
            self.selected += 1


# =============================================================================
# Transitions
# =============================================================================


def type_into(input_field: InputField, key: str) -> bool:
    """Send one key through the field's mask, then its editor. Returns False if rejected."""
    result = apply_mask(input_field.identifier, input_field.value, key)
    if result.action is MaskAction.REJECT:
        return False
    if result.action is MaskAction.TRANSFORM:
        input_field.value = result.text
        input_field.set_cursor(result.cursor)
        return True
    if input_field.identifier in MASKS and key not in NAVIGATION_KEYS:
        # masked fields are only ever edited at the end
        input_field.set_cursor(len(input_field.value))
    return input_field.handle_key(key)


def replay(input_field: InputField, text: str) -> str:
    """Type text key by key into the field and return what the field ended up holding."""
    for char in text:
        type_into(input_field, char)
    return input_field.value


def validate_criteria(criteria: SearchCriteria) -> None:
    if not criteria.station_from:
        raise ValidationError("Please enter a departure station.")
    if not criteria.station_to:
        raise ValidationError("Please enter an arrival station.")


def submit(state: UIState) -> Command:
    """Start a search unless one is already running or the inputs are incomplete."""
    if state.loading:
        return None

    criteria = state.criteria()
    try:
        validate_criteria(criteria)
    except ValidationError as e:
        state.error = str(e)
        return None

    state.loading = True
    state.connections = []
    state.selected = 0
    state.error = None
    state.searched = True
    state.request_id += 1
    limit = state.limit or state.max_visible_connections()
    logger.info("Search #%d: %s", state.request_id, criteria)
    return FetchCommand(criteria=criteria, limit=limit, request_id=state.request_id)


def apply_fetch_result(state: UIState, result: FetchResult) -> None:
    if result.request_id != state.request_id:
        logger.debug("Discarding stale result #%d (current #%d)", result.request_id, state.request_id)
        return

    state.loading = False
    state.selected = 0
    if result.error is not None:
        logger.warning("Search #%d failed: %s", result.request_id, result.error)
        state.error = FETCH_FAILED_MESSAGE
        state.connections = []
        return

    state.error = None
    state.connections = list(result.connections)


def handle_key(state: UIState, key: str) -> Command:
    if key in ("ctrl+c", "esc"):
        return QUIT

    current = state.focus.current
    actions = {
        "swap": state.swap_stations,
        "isArrivalTime": state.toggle_arrival_time,
        "search": lambda: submit(state),
    }

    if key == "q" and current.is_button:
        return QUIT
    if key == "tab" or (key == "right" and current.is_button):
        state.focus.advance()
    elif key == "shift+tab" or (key == "left" and current.is_button):
        state.focus.retreat()
    elif key == "up":
        state.select_previous()
    elif key == "down":
        state.select_next()
    elif key == "enter":
        if current.is_button:
            return state.focus.activate(actions)
        return submit(state)
    elif key == " " and current.is_button:
        return state.focus.activate(actions)
    else:
        input_field = state.focus.focused_field()
        if input_field is not None:
            type_into(input_field, key)
    return None


def update(state: UIState, event) -> Command:
    """Apply one event to the state; return what the event loop should do next."""
    if isinstance(event, KeyEvent):
        return handle_key(state, event.key)
    if isinstance(event, ResizeEvent):
        state.resize(event.width, event.height)
    elif isinstance(event, FetchResult):
        apply_fetch_result(state, event)
    return None


def initial_state(config: Config, width: int = 0, height: int = 0,
                  now: datetime | None = None) -> UIState:
    """Build the starting state, prefilled from the command line."""
    state = UIState(width, height, now=now, limit=config.limit)
    state.fields["from"].set_value(config.station_from)
    state.fields["to"].set_value(config.station_to)
    replay(state.fields["date"], config.date)
    replay(state.fields["time"], config.time)
    state.is_arrival_time = config.is_arrival_time
    return state

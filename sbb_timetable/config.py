"""Configuration constants, theme and CLI config dataclass for sbb-timetable."""

from dataclasses import dataclass, field

# API constants
API_BASE = "https://transport.opendata.ch/v1"
REQUEST_TIMEOUT = 10.0  # seconds
MAX_RETRIES = 3
RETRY_DELAY = 1  # seconds
DEFAULT_LIMIT = 4

# Input fields
STATION_CHAR_LIMIT = 32
DATE_CHAR_LIMIT = 10
TIME_CHAR_LIMIT = 5
DATE_FIELD_WIDTH = 12
TIME_FIELD_WIDTH = 7
MIN_STATION_FIELD_WIDTH = 8

# Layout dimensions
BORDER_SIZE = 2
HEADER_HEIGHT = 3
HEADER_MIN_WIDTH = 82
HEADER_PADDING = 2
RESULT_MARGIN = 1
CARD_HEIGHT = 9
CARD_MARGIN = 3
STOPS_LINE_FIXED_WIDTH = (BORDER_SIZE * 2) + (CARD_MARGIN * 2) + (2 + 5) * 2 + 6
STOPS_LINE_MIN_WIDTH = 10
DETAIL_PADDING_H = 3
DETAIL_PADDING_V = 1

# Station line columns
TIME_COL = 5
DELAY_COL = 4
SYMBOL_COL = 5

# Event loop
TICK_INTERVAL = 0.25  # seconds


@dataclass(frozen=True)
class Icons:
    """Glyphs used by the renderers."""
    filled_dot: str = "●"
    hollow_dot: str = "○"
    horz_line: str = "─"
    vert_line: str = "│"
    arrival: str = "Arr"
    departure: str = "Dep"
    platform: str = "Pl."
    search: str = "Search"
    swap: str = "⇄"
    vehicle: str = "🚆"
    walk: str = "🚶"


DEFAULT_ICONS = Icons()

# Requires a patched Nerd Font in the terminal
NERD_FONT_ICONS = Icons(
    arrival="\U000f05d4",
    departure="\uee78",
    platform="\U000f1013",
    search="\uf002",
    swap="\uebcb",
    vehicle="\uf239",
    walk="\uee1d",
)


@dataclass(frozen=True)
class Theme:
    """Colours and glyphs handed to every renderer."""
    accent: str = "#D82E20"
    frame: str = "#862010"
    focused_border: str = "#D82E20"
    blurred_border: str = "#484848"
    title: str = "bold #FFFFFF on #D82E20"
    vehicle_badge: str = "#FFFFFF on #2E3279"
    category: str = "bold #FFFFFF on #D82E20"
    operator: str = "#141414 on #FFFFFF"
    delay: str = "bold #D82E20"
    placeholder: str = "#888888"
    cursor: str = "reverse"
    icons: Icons = field(default_factory=Icons)


DEFAULT_THEME = Theme()


@dataclass
class Config:
    """Runtime configuration built from CLI arguments."""
    station_from: str = ""
    station_to: str = ""
    date: str = ""
    time: str = ""
    is_arrival_time: bool = False
    limit: int | None = None
    once: bool = False
    theme: Theme = DEFAULT_THEME
    log_file: str | None = None
    debug: bool = False

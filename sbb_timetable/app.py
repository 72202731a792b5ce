#!/usr/bin/env python3
"""
sbb-timetable — Swiss public transport timetable TUI

Search train connections between two stations and browse them as cards
with a proportional timeline. Uses the transport.opendata.ch API.

Usage:
    sbb-timetable
    sbb-timetable --from Zürich --to Bern            # Prefill and search right away
    sbb-timetable --from Bern --to Brig --time 08:30
    sbb-timetable --from Basel --to Chur --arrival --time 18:00
    sbb-timetable --from Zürich --to Bern --once     # Print results and exit
"""

import argparse
import logging
import queue
import sys
import threading
from typing import Callable

from rich.console import Console
from rich.live import Live

from .api import FetchError, fetch_connections
from .config import (
    DATE_CHAR_LIMIT, DEFAULT_LIMIT, DEFAULT_THEME, NERD_FONT_ICONS, RESULT_MARGIN,
    STOPS_LINE_FIXED_WIDTH, STOPS_LINE_MIN_WIDTH, TICK_INTERVAL, TIME_CHAR_LIMIT,
    Config, Theme,
)
from .display import build_connection_cards, build_error_message, build_screen
from .display.messages import EMPTY_MESSAGE
from .inputs import InputField
from .keys import cbreak_terminal, read_keys
from .masks import DATE_FIELD, TIME_FIELD
from .models import Connection, SearchCriteria
from .state import (
    FETCH_FAILED_MESSAGE, FetchCommand, FetchResult, KeyEvent, QuitCommand,
    ResizeEvent, TickEvent, UIState, ValidationError, initial_state, replay,
    submit, update, validate_criteria,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[[SearchCriteria, int], list[Connection]]


# =============================================================================
# Event loop
# =============================================================================


def start_key_reader(events: queue.Queue, fd: int, stop: threading.Event) -> threading.Thread:
    """Pump decoded key presses from the terminal into the event queue."""
    def pump():
        while not stop.is_set():
            try:
                keys = read_keys(fd, TICK_INTERVAL)
            except (EOFError, OSError) as e:
                logger.error("Keyboard input closed: %s", e)
                events.put(KeyEvent("ctrl+c"))
                return
            for key in keys:
                events.put(KeyEvent(key))

    thread = threading.Thread(target=pump, name="key-reader", daemon=True)
    thread.start()
    return thread


def dispatch_fetch(command: FetchCommand, events: queue.Queue, fetch: Fetcher) -> threading.Thread:
    """
    Run the fetch off the event loop. Its outcome comes back as a FetchResult
    event tagged with the request id, never as a return value.
    """
    def work():
        try:
            connections = fetch(command.criteria, command.limit)
        except FetchError as e:
            events.put(FetchResult(command.request_id, error=str(e)))
            return
        except Exception as e:
            logger.exception("Fetch #%d crashed", command.request_id)
            events.put(FetchResult(command.request_id, error=f"{type(e).__name__}: {e}"))
            return
        events.put(FetchResult(command.request_id, connections=tuple(connections)))

    thread = threading.Thread(target=work, name=f"fetch-{command.request_id}", daemon=True)
    thread.start()
    return thread


def run_event_loop(
    state: UIState,
    events: queue.Queue,
    render: Callable[[UIState], None],
    fetch: Fetcher,
    size: Callable[[], tuple[int, int]],
    initial_command=None,
) -> None:
    """Consume events one at a time until a quit command comes back."""
    command = initial_command
    while True:
        if isinstance(command, QuitCommand):
            return
        if isinstance(command, FetchCommand):
            dispatch_fetch(command, events, fetch)
        render(state)

        try:
            event = events.get(timeout=TICK_INTERVAL)
        except queue.Empty:
            event = TickEvent()

        width, height = size()
        if (width, height) != (state.width, state.height):
            update(state, ResizeEvent(width, height))

        command = update(state, event)


def run_interactive(config: Config, console: Console) -> int:
    import termios

    if not sys.stdin.isatty():
        Console(stderr=True).print("[red]sbb-timetable needs an interactive terminal (or use --once).[/]")
        return 1

    width, height = console.size
    state = initial_state(config, width, height)
    theme = config.theme
    events: queue.Queue = queue.Queue()
    stop = threading.Event()

    # Search right away when both stations came from the command line
    first_command = submit(state) if config.station_from and config.station_to else None

    try:
        with cbreak_terminal() as fd, Live(
            build_screen(state, theme),
            console=console,
            screen=True,
            auto_refresh=False,
        ) as live:
            start_key_reader(events, fd, stop)
            try:
                run_event_loop(
                    state,
                    events,
                    render=lambda s: live.update(build_screen(s, theme), refresh=True),
                    fetch=fetch_connections,
                    size=lambda: tuple(console.size),
                    initial_command=first_command,
                )
            finally:
                stop.set()
    except (OSError, termios.error) as e:
        Console(stderr=True).print(f"[red]Terminal setup failed: {e}[/]")
        return 1
    return 0


# =============================================================================
# One-shot mode
# =============================================================================


def run_once(config: Config, console: Console, fetch: Fetcher = fetch_connections) -> int:
    """Fetch once, print the connection cards, and exit."""
    criteria = SearchCriteria(
        station_from=config.station_from,
        station_to=config.station_to,
        date=config.date,
        time=config.time,
        is_arrival_time=config.is_arrival_time,
    )
    try:
        validate_criteria(criteria)
    except ValidationError as e:
        Console(stderr=True).print(f"[red]{e}[/]")
        return 2

    try:
        connections = fetch(criteria, config.limit or DEFAULT_LIMIT)
    except FetchError as e:
        logger.error("Fetch failed: %s", e)
        console.print(build_error_message(FETCH_FAILED_MESSAGE, config.theme))
        return 1

    if not connections:
        console.print(EMPTY_MESSAGE)
        return 0

    min_width = RESULT_MARGIN + STOPS_LINE_MIN_WIDTH + STOPS_LINE_FIXED_WIDTH
    width = max(min(console.width, 100), min_width)
    console.print(build_connection_cards(connections, width, config.theme))
    return 0


# =============================================================================
# CLI
# =============================================================================


def masked_argument(field_id: str, char_limit: int, shape: str):
    """argparse type that only accepts values the header field's mask would produce."""
    def parse(value: str) -> str:
        if not value:
            return value
        typed = replay(InputField(field_id, char_limit=char_limit), value)
        if typed != value or len(value) != char_limit:
            raise argparse.ArgumentTypeError(f"expected a valid {shape}, got {value!r}")
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sbb-timetable",
        description="Search Swiss train connections in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s                                   # Start with an empty search form
    %(prog)s --from Zürich --to Bern           # Prefill and search right away
    %(prog)s --from Bern --to Brig --date 2025-06-01 --time 08:30
    %(prog)s --from Basel --to Chur --arrival  # Times are arrival times
    %(prog)s --from Zürich --to Bern --once    # Print the cards and exit

Keys: Tab/Shift+Tab move focus, Enter searches (or presses the focused
button), Space presses buttons, Up/Down pick a connection, Esc quits.
        """
    )
    parser.add_argument("--from", dest="station_from", default="", metavar="STATION",
                        help="Departure station")
    parser.add_argument("--to", dest="station_to", default="", metavar="STATION",
                        help="Arrival station")
    parser.add_argument("--date", default="",
                        type=masked_argument(DATE_FIELD, DATE_CHAR_LIMIT, "YYYY-MM-DD date"),
                        help="Travel date as YYYY-MM-DD (default: today)")
    parser.add_argument("--time", default="",
                        type=masked_argument(TIME_FIELD, TIME_CHAR_LIMIT, "HH:MM time"),
                        help="Travel time as HH:MM (default: now)")
    parser.add_argument("--arrival", action="store_true",
                        help="Treat --time as the arrival time instead of the departure time")
    parser.add_argument("-n", "--limit", type=int, default=None,
                        help="Number of connections to request (default: as many as fit)")
    parser.add_argument("--once", action="store_true",
                        help="Fetch once, print the connections and exit (no interface)")
    parser.add_argument("--nerd-font", action="store_true",
                        help="Use Nerd Font icons (needs a patched font)")
    parser.add_argument("--log-file", metavar="PATH",
                        help="Write log messages to this file")
    parser.add_argument("--debug", action="store_true",
                        help="Log debug messages (with --log-file)")
    return parser


def parse_args(argv: list[str] | None = None) -> Config:
    parser = build_parser()
    args = parser.parse_args(argv)
    theme = Theme(icons=NERD_FONT_ICONS) if args.nerd_font else DEFAULT_THEME
    if args.limit is not None and args.limit < 1:
        parser.error("--limit must be at least 1")
    return Config(
        station_from=args.station_from,
        station_to=args.station_to,
        date=args.date,
        time=args.time,
        is_arrival_time=args.arrival,
        limit=args.limit,
        once=args.once,
        theme=theme,
        log_file=args.log_file,
        debug=args.debug,
    )


def configure_logging(config: Config) -> None:
    """Log to a file only; the terminal belongs to the interface."""
    if not config.log_file:
        return
    logging.basicConfig(
        filename=config.log_file,
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: list[str] | None = None):
    config = parse_args(argv)
    configure_logging(config)
    console = Console()

    if config.once:
        sys.exit(run_once(config, console))

    try:
        sys.exit(run_interactive(config, console))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()

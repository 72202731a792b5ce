"""Integration tests for sbb-timetable: state transitions, rendered screens and the event loop."""

import queue
import termios
from unittest.mock import patch

import pytest
from rich.console import Console

from sbb_timetable.api import FetchError
from sbb_timetable.app import (
    dispatch_fetch, main, masked_argument, parse_args, run_event_loop,
    run_interactive, run_once,
)
from sbb_timetable.config import DEFAULT_LIMIT, NERD_FONT_ICONS, Config
from sbb_timetable.display import (
    build_connection_card, build_connection_detail, build_header, build_input_text,
    build_screen,
)
from sbb_timetable.display.messages import EMPTY_MESSAGE, LOADING_MESSAGE, WELCOME_MESSAGE
from sbb_timetable.inputs import InputField
from sbb_timetable.state import (
    FETCH_FAILED_MESSAGE, QUIT, FetchCommand, FetchResult, KeyEvent, ResizeEvent,
    TickEvent, initial_state, submit, update,
)

from conftest import (
    FIXED_NOW, make_connection, make_state, make_vehicle_leg, make_walk_leg,
    render_to_text, sample_transfer_connection,
)


def press(state, *keys):
    """Feed keys through update and return the last command."""
    command = None
    for key in keys:
        command = update(state, KeyEvent(key))
    return command


def filled_state(**kwargs):
    state = make_state(**kwargs)
    state.fields["from"].set_value("Zürich HB")
    state.fields["to"].set_value("Bern")
    return state


def focus_on(state, identifier):
    while state.focus.current.identifier != identifier:
        state.focus.advance()


# =============================================================================
# TestKeyHandling
# =============================================================================


class TestKeyHandling:
    def test_typing_goes_to_focused_field(self):
        state = make_state()
        press(state, *"Zürich")
        assert state.fields["from"].value == "Zürich"
        press(state, "tab", *"Bern")
        assert state.fields["to"].value == "Bern"
        assert state.fields["from"].value == "Zürich"

    def test_tab_and_shift_tab_move_focus(self):
        state = make_state()
        press(state, "tab")
        assert state.focus.current.identifier == "to"
        press(state, "shift+tab", "shift+tab")
        assert state.focus.current.identifier == "search"

    def test_q_types_into_inputs(self):
        state = make_state()
        assert press(state, "q") is None
        assert state.fields["from"].value == "q"

    def test_q_quits_on_buttons(self):
        state = make_state()
        focus_on(state, "swap")
        assert press(state, "q") is QUIT

    def test_escape_and_ctrl_c_quit(self):
        assert press(make_state(), "esc") is QUIT
        assert press(make_state(), "ctrl+c") is QUIT

    def test_arrows_move_focus_between_buttons(self):
        state = make_state()
        focus_on(state, "swap")
        press(state, "right")
        assert state.focus.current.identifier == "isArrivalTime"
        press(state, "left")
        assert state.focus.current.identifier == "swap"

    def test_arrows_move_cursor_inside_inputs(self):
        state = make_state()
        press(state, *"Bern", "left")
        assert state.focus.current.identifier == "from"
        assert state.fields["from"].cursor == 3

    def test_swap_button(self):
        state = filled_state()
        focus_on(state, "swap")
        press(state, "enter")
        assert state.fields["from"].value == "Bern"
        assert state.fields["to"].value == "Zürich HB"

    def test_swap_is_an_involution(self):
        state = filled_state()
        focus_on(state, "swap")
        press(state, "enter", " ")
        assert state.fields["from"].value == "Zürich HB"
        assert state.fields["to"].value == "Bern"

    def test_space_toggles_arrival_time(self):
        state = make_state()
        focus_on(state, "isArrivalTime")
        press(state, " ")
        assert state.is_arrival_time
        press(state, " ")
        assert not state.is_arrival_time

    def test_date_typed_through_mask(self):
        state = make_state()
        focus_on(state, "date")
        press(state, *"20251017")
        assert state.fields["date"].value == "2025-10-17"

    def test_time_rejects_invalid_hour(self):
        state = make_state()
        focus_on(state, "time")
        press(state, "2", "4", "1", "5")
        assert state.fields["time"].value == "21:5"

    def test_date_and_time_placeholders_show_now(self):
        state = make_state()
        assert state.fields["date"].placeholder == "2025-03-15"
        assert state.fields["time"].placeholder == "14:30"

    def test_up_down_select_connection(self):
        state = make_state()
        state.connections = [make_connection(), make_connection(), make_connection()]
        press(state, "up")
        assert state.selected == 0
        press(state, "down", "down", "down")
        assert state.selected == 2
        press(state, "up")
        assert state.selected == 1

    def test_up_down_without_results(self):
        state = make_state()
        press(state, "down")
        assert state.selected == 0

    def test_resize_updates_station_widths(self):
        state = make_state()
        update(state, ResizeEvent(200, 60))
        assert state.width == 200
        assert state.fields["from"].width == 58
        update(state, ResizeEvent(80, 24))
        assert state.fields["to"].width == 8

    def test_tick_changes_nothing(self):
        state = filled_state()
        assert update(state, TickEvent()) is None
        assert not state.loading


# =============================================================================
# TestSearchLifecycle
# =============================================================================


class TestSearchLifecycle:
    def test_enter_in_input_submits(self):
        state = filled_state()
        command = press(state, "enter")
        assert isinstance(command, FetchCommand)
        assert command.criteria.station_from == "Zürich HB"
        assert command.criteria.station_to == "Bern"
        assert command.criteria.is_arrival_time is False
        assert command.request_id == 1
        assert state.loading
        assert state.searched

    def test_limit_follows_visible_cards(self):
        state = filled_state(height=40)
        assert press(state, "enter").limit == 3

    def test_configured_limit_wins(self):
        state = filled_state(limit=7)
        assert press(state, "enter").limit == 7

    def test_search_button_submits(self):
        state = filled_state()
        focus_on(state, "search")
        assert isinstance(press(state, "enter"), FetchCommand)

    def test_submit_ignored_while_loading(self):
        state = filled_state()
        press(state, "enter")
        assert press(state, "enter") is None
        assert state.request_id == 1

    def test_missing_departure_station(self):
        state = make_state()
        state.fields["to"].set_value("Bern")
        assert press(state, "enter") is None
        assert state.error == "Please enter a departure station."
        assert not state.loading

    def test_missing_arrival_station(self):
        state = make_state()
        state.fields["from"].set_value("Bern")
        assert press(state, "enter") is None
        assert state.error == "Please enter an arrival station."

    def test_validation_error_keeps_results(self):
        state = make_state()
        state.connections = [sample_transfer_connection()]
        press(state, "enter")
        assert state.error == "Please enter a departure station."
        assert len(state.connections) == 1

    def test_results_arrive(self):
        state = filled_state()
        command = press(state, "enter")
        update(state, FetchResult(command.request_id, connections=(sample_transfer_connection(),)))
        assert not state.loading
        assert state.error is None
        assert len(state.connections) == 1
        assert state.selected == 0

    def test_fetch_error(self):
        state = filled_state()
        command = press(state, "enter")
        update(state, FetchResult(command.request_id, error="HTTP 500"))
        assert not state.loading
        assert state.error == FETCH_FAILED_MESSAGE
        assert state.connections == []

    def test_stale_results_discarded(self):
        state = filled_state()
        first = press(state, "enter")
        update(state, FetchResult(first.request_id, error="timeout"))
        second = press(state, "enter")
        assert second.request_id == first.request_id + 1

        update(state, FetchResult(first.request_id, connections=(make_connection(),)))
        assert state.loading
        assert state.connections == []

        update(state, FetchResult(second.request_id, connections=(sample_transfer_connection(),)))
        assert not state.loading
        assert state.connections[0].transfers == 1

    def test_new_search_clears_previous_results(self):
        state = filled_state()
        state.connections = [make_connection(), make_connection()]
        state.selected = 1
        press(state, "enter")
        assert state.connections == []
        assert state.selected == 0

    def test_initial_state_from_config(self):
        config = Config(station_from="Basel SBB", station_to="Chur", date="2025-06-01",
                        time="08:30", is_arrival_time=True, limit=5)
        state = initial_state(config, 120, 40, now=FIXED_NOW)
        assert state.fields["from"].value == "Basel SBB"
        assert state.fields["date"].value == "2025-06-01"
        assert state.fields["time"].value == "08:30"
        command = submit(state)
        assert command.criteria.is_arrival_time
        assert command.criteria.date == "2025-06-01"
        assert command.limit == 5


# =============================================================================
# TestRenderedScreen
# =============================================================================


class TestRenderedScreen:
    def test_initial_screen(self):
        text = render_to_text(build_screen(make_state()))
        assert "SBB TIMETABLES" in text
        assert "From" in text
        assert "To" in text
        assert "2025-03-15" in text
        assert "14:30" in text
        assert "Dep" in text
        assert "Search" in text
        assert WELCOME_MESSAGE in text
        assert "Esc: quit" in text

    def test_arrival_toggle_label(self):
        state = make_state()
        state.toggle_arrival_time()
        text = render_to_text(build_header(state))
        assert "Arr" in text
        assert "Dep" not in text

    def test_typed_values_replace_placeholders(self):
        state = filled_state()
        text = render_to_text(build_header(state))
        assert "Zürich HB" in text
        assert "Bern" in text

    def test_loading_message(self):
        state = filled_state()
        press(state, "enter")
        text = render_to_text(build_screen(state))
        assert LOADING_MESSAGE in text

    def test_results_and_detail(self):
        state = make_state()
        state.connections = [sample_transfer_connection(), make_connection()]
        text = render_to_text(build_screen(state))

        # Cards
        assert "IR 37" in text
        assert "IC 8" in text
        assert "1h 2m" in text
        assert "56min" in text
        assert "Pl. 31" in text
        assert "+3" in text

        # Detail of the first connection
        assert "Olten" in text
        assert "→ Basel SBB" in text
        assert "4 min" in text
        assert "Pl. 7" in text

    def test_selection_switches_detail(self):
        state = make_state()
        state.connections = [sample_transfer_connection(), make_connection()]
        press(state, "down")
        text = render_to_text(build_screen(state))
        assert "→ Brig" in text
        assert "→ Basel SBB" not in text

    def test_error_shown_over_results(self):
        state = make_state()
        state.connections = [sample_transfer_connection()]
        press(state, "enter")
        text = render_to_text(build_screen(state))
        assert "Please enter a departure station." in text
        assert "IR 37" in text

    def test_fetch_failure_message(self):
        state = filled_state()
        command = press(state, "enter")
        update(state, FetchResult(command.request_id, error="boom"))
        text = render_to_text(build_screen(state))
        assert FETCH_FAILED_MESSAGE in text

    def test_messages_span_the_whole_body_on_narrow_screens(self):
        state = filled_state(width=80)
        command = press(state, "enter")
        update(state, FetchResult(command.request_id, error="boom"))
        text = render_to_text(build_screen(state), width=80)
        assert FETCH_FAILED_MESSAGE in text

    def test_empty_message_on_one_line(self):
        state = filled_state(width=80)
        command = press(state, "enter")
        update(state, FetchResult(command.request_id))
        text = render_to_text(build_screen(state), width=80)
        assert EMPTY_MESSAGE in text

    def test_empty_result_message(self):
        state = filled_state()
        command = press(state, "enter")
        update(state, FetchResult(command.request_id))
        text = render_to_text(build_screen(state))
        assert EMPTY_MESSAGE in text
        assert state.error is None

    def test_results_scroll_with_selection(self):
        state = make_state(height=40)
        state.connections = [
            make_connection(legs=[make_vehicle_leg(number=str(n))]) for n in range(501, 506)
        ]
        press(state, "down", "down", "down", "down")
        text = render_to_text(build_screen(state))
        assert "IC 501" not in text
        assert "IC 502" not in text
        assert "IC 503" in text
        assert "IC 505" in text


# =============================================================================
# TestRenderedCards
# =============================================================================


class TestRenderedCards:
    def test_card_contents(self):
        card = build_connection_card(sample_transfer_connection(), 58)
        text = render_to_text(card, width=60)
        assert "IR 37" in text
        assert "SBB" in text
        assert "Basel SBB" in text
        assert "14:30" in text
        assert "15:32" in text
        assert "●" in text
        assert "○" in text
        assert "Pl. 31" in text
        assert "1h 2m" in text

    def test_card_height_is_fixed(self):
        card = build_connection_card(sample_transfer_connection(), 58)
        lines = render_to_text(card, width=58).rstrip("\n").split("\n")
        assert len(lines) == 9

    def test_card_starting_with_walk(self):
        connection = make_connection(legs=[
            make_walk_leg(seconds=300),
            make_vehicle_leg(dep_time=5, arr_time=35),
        ])
        text = render_to_text(build_connection_card(connection, 58), width=60)
        assert "🚶 5m" in text

    def test_walk_only_card(self):
        connection = make_connection(legs=[make_walk_leg(seconds=600)], duration="00d00:10:00")
        text = render_to_text(build_connection_card(connection, 58), width=60)
        assert "Walk" in text
        assert "10min" in text

    def test_detail_lists_every_leg(self):
        detail = build_connection_detail(sample_transfer_connection(), 54)
        text = render_to_text(detail, width=60)
        for station in ("Zürich HB", "Olten", "Bern"):
            assert station in text
        assert "IC 6" in text
        assert "→ Brig" in text
        assert "Pl. 10" in text
        assert "Pl. 5" in text

    def test_detail_rejects_unknown_leg(self):
        connection = make_connection(legs=[object()])
        with pytest.raises(TypeError):
            build_connection_detail(connection, 54)

    def test_input_text_placeholder_and_value(self):
        field = InputField("from", placeholder="From", width=10)
        assert build_input_text(field).plain == "From"
        field.set_value("Bern")
        assert build_input_text(field).plain == "Bern"
        field.focus()
        assert build_input_text(field).plain == "Bern "

    def test_input_text_scrolls_to_cursor(self):
        field = InputField("from", width=5)
        field.set_value("Lausanne")
        field.focus()
        assert build_input_text(field).plain == "anne "


# =============================================================================
# TestEventLoop
# =============================================================================


class TestEventLoop:
    def test_search_round_trip(self):
        state = filled_state()
        events = queue.Queue()
        events.put(KeyEvent("enter"))
        fetched = []

        def fetch(criteria, limit):
            fetched.append((criteria, limit))
            return [sample_transfer_connection()]

        renders = []

        def render(s):
            renders.append(s.loading)
            if s.connections or len(renders) > 200:
                events.put(KeyEvent("esc"))

        run_event_loop(state, events, render, fetch, size=lambda: (120, 40))

        assert len(fetched) == 1
        assert fetched[0][0].station_from == "Zürich HB"
        assert fetched[0][1] == 3
        assert True in renders
        assert len(state.connections) == 1
        assert not state.loading

    def test_initial_command_dispatched(self):
        state = filled_state()
        events = queue.Queue()

        def render(s):
            if s.connections or s.error:
                events.put(KeyEvent("ctrl+c"))

        run_event_loop(
            state, events, render,
            fetch=lambda criteria, limit: [make_connection()],
            size=lambda: (120, 40),
            initial_command=submit(state),
        )
        assert len(state.connections) == 1

    def test_fetch_error_reaches_state(self):
        state = filled_state()
        events = queue.Queue()
        events.put(KeyEvent("enter"))

        def fetch(criteria, limit):
            raise FetchError("HTTP 503")

        def render(s):
            if s.error:
                events.put(KeyEvent("esc"))

        run_event_loop(state, events, render, fetch, size=lambda: (120, 40))
        assert state.error == FETCH_FAILED_MESSAGE

    def test_resize_applied(self):
        state = make_state()
        events = queue.Queue()
        events.put(KeyEvent("esc"))
        run_event_loop(state, events, lambda s: None, fetch=None, size=lambda: (100, 30))
        assert (state.width, state.height) == (100, 30)

    def test_dispatch_fetch_posts_result(self):
        events = queue.Queue()
        command = FetchCommand(criteria=filled_state().criteria(), limit=2, request_id=7)
        dispatch_fetch(command, events, lambda criteria, limit: [make_connection()]).join(5)
        result = events.get(timeout=5)
        assert result.request_id == 7
        assert len(result.connections) == 1
        assert result.error is None

    def test_dispatch_fetch_posts_error(self):
        events = queue.Queue()
        command = FetchCommand(criteria=filled_state().criteria(), limit=2, request_id=3)

        def fetch(criteria, limit):
            raise FetchError("boom")

        dispatch_fetch(command, events, fetch).join(5)
        result = events.get(timeout=5)
        assert result == FetchResult(3, error="boom")

    def test_unexpected_fetch_crash_still_posts_result(self):
        events = queue.Queue()
        command = FetchCommand(criteria=filled_state().criteria(), limit=2, request_id=4)

        def fetch(criteria, limit):
            raise RuntimeError("decoder bug")

        dispatch_fetch(command, events, fetch).join(5)
        result = events.get(timeout=5)
        assert result.request_id == 4
        assert "RuntimeError" in result.error
        assert result.connections == ()

    def test_unexpected_fetch_crash_clears_loading(self):
        state = filled_state()
        events = queue.Queue()
        events.put(KeyEvent("enter"))

        def fetch(criteria, limit):
            raise KeyError("connections")

        def render(s):
            if s.error:
                events.put(KeyEvent("esc"))

        run_event_loop(state, events, render, fetch, size=lambda: (120, 40))
        assert not state.loading
        assert state.error == FETCH_FAILED_MESSAGE
        assert isinstance(press(state, "enter"), FetchCommand)


# =============================================================================
# TestOnceMode
# =============================================================================


class TestOnceMode:
    def make_console(self):
        return Console(record=True, width=100, force_terminal=False)

    def test_prints_cards(self):
        console = self.make_console()
        calls = []

        def fetch(criteria, limit):
            calls.append(limit)
            return [sample_transfer_connection()]

        config = Config(station_from="Zürich HB", station_to="Bern")
        assert run_once(config, console, fetch=fetch) == 0
        assert calls == [DEFAULT_LIMIT]
        text = console.export_text()
        assert "IR 37" in text
        assert "1h 2m" in text

    def test_empty_result(self):
        console = self.make_console()
        config = Config(station_from="Zürich HB", station_to="Bern", limit=2)
        assert run_once(config, console, fetch=lambda c, n: []) == 0
        assert EMPTY_MESSAGE in console.export_text()

    def test_fetch_error(self):
        console = self.make_console()

        def fetch(criteria, limit):
            raise FetchError("HTTP 500")

        config = Config(station_from="Zürich HB", station_to="Bern")
        assert run_once(config, console, fetch=fetch) == 1
        assert FETCH_FAILED_MESSAGE in console.export_text()

    def test_missing_station(self):
        config = Config(station_to="Bern")
        assert run_once(config, self.make_console(), fetch=lambda c, n: []) == 2

    def test_main_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--once", "--to", "Bern"])
        assert exc_info.value.code == 2

    def test_interactive_needs_a_terminal(self):
        with patch("sbb_timetable.app.sys.stdin") as mock_stdin:
            mock_stdin.isatty.return_value = False
            assert run_interactive(Config(), self.make_console()) == 1

    def test_terminal_setup_failure(self):
        with patch("sbb_timetable.app.sys.stdin") as mock_stdin, \
                patch("sbb_timetable.app.cbreak_terminal") as mock_cbreak:
            mock_stdin.isatty.return_value = True
            mock_cbreak.side_effect = termios.error(25, "Inappropriate ioctl for device")
            assert run_interactive(Config(), self.make_console()) == 1


# =============================================================================
# TestCommandLine
# =============================================================================


class TestCommandLine:
    def test_defaults(self):
        config = parse_args([])
        assert config.station_from == ""
        assert config.date == ""
        assert config.limit is None
        assert not config.once
        assert not config.is_arrival_time

    def test_all_options(self):
        config = parse_args([
            "--from", "Zürich HB", "--to", "Bern", "--date", "2025-06-01",
            "--time", "08:30", "--arrival", "-n", "2", "--once", "--nerd-font",
        ])
        assert config.station_from == "Zürich HB"
        assert config.station_to == "Bern"
        assert config.date == "2025-06-01"
        assert config.time == "08:30"
        assert config.is_arrival_time
        assert config.limit == 2
        assert config.once
        assert config.theme.icons == NERD_FONT_ICONS

    def test_invalid_date_rejected(self):
        for value in ("2025-13-01", "2025-6-1", "2025-06"):
            with pytest.raises(SystemExit):
                parse_args(["--date", value])

    def test_invalid_time_rejected(self):
        for value in ("8:30", "24:00", "12:60"):
            with pytest.raises(SystemExit):
                parse_args(["--time", value])

    def test_limit_must_be_positive(self):
        with pytest.raises(SystemExit):
            parse_args(["--limit", "0"])

    def test_masked_argument(self):
        parse = masked_argument("time", 5, "HH:MM time")
        assert parse("23:59") == "23:59"
        assert parse("") == ""

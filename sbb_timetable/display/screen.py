"""Full-screen composition: header bar over a results list and detail card."""

from rich import box
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table

from ..config import DEFAULT_THEME, HEADER_HEIGHT, RESULT_MARGIN, Theme
from ..state import UIState
from .detail import build_connection_detail
from .header import build_header
from .results import build_results_list

KEY_HINTS = "Tab: next  Enter: search  ↑/↓: select  Esc: quit"


def build_results_body(state: UIState, theme: Theme = DEFAULT_THEME) -> Table:
    """Cards beside the detail card, or a full-width message when nothing is selected."""
    body = Table.grid(padding=0)
    results = build_results_list(state, theme)

    connection = state.selected_connection
    if connection is None or state.loading:
        body.add_column()
        body.add_row(results)
        return body

    body.add_column(width=state.result_box_width)
    body.add_column()
    body.add_row(results, build_connection_detail(
        connection, state.detail_box_width, state.results_height, theme
    ))
    return body


def build_screen(state: UIState, theme: Theme = DEFAULT_THEME) -> Layout:
    """Build the whole screen from the current state. Pure: no state is touched."""
    layout = Layout()
    layout.split_column(
        Layout(build_header(state, theme), name="header", size=HEADER_HEIGHT),
        Layout(name="body"),
    )
    layout["body"].update(Panel(
        build_results_body(state, theme),
        box=box.ROUNDED,
        border_style=theme.frame,
        padding=(0, RESULT_MARGIN),
        subtitle=f"[dim]{KEY_HINTS}[/]",
    ))
    return layout

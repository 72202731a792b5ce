"""Header bar: one bordered box per focus item, then the title badge."""

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..config import DEFAULT_THEME, Theme
from ..focus import FocusableItem
from ..inputs import InputField
from ..state import UIState

TITLE = " SBB TIMETABLES <+> "


def build_input_text(field: InputField, theme: Theme = DEFAULT_THEME) -> Text:
    """Render a field's value with its cursor, or its placeholder when empty."""
    width = max(field.width, 1)

    if not field.value:
        placeholder = field.placeholder[:width]
        text = Text()
        if field.focused:
            text.append(placeholder[:1] or " ", style=theme.cursor)
            text.append(placeholder[1:], style=theme.placeholder)
        else:
            text.append(placeholder, style=theme.placeholder)
        return text

    # Scroll so the cursor stays inside the visible window
    start = max(0, field.cursor - width + 1)
    visible = field.value[start:start + width]
    if not field.focused:
        return Text(visible)

    cursor = field.cursor - start
    text = Text(visible[:cursor])
    text.append(visible[cursor:cursor + 1] or " ", style=theme.cursor)
    text.append(visible[cursor + 1:])
    return text


def button_label(item: FocusableItem, state: UIState, theme: Theme = DEFAULT_THEME) -> str:
    icons = theme.icons
    if item.identifier == "swap":
        return icons.swap
    if item.identifier == "isArrivalTime":
        return icons.arrival if state.is_arrival_time else icons.departure
    if item.identifier == "search":
        return icons.search
    return " "


def build_header_item(state: UIState, index: int, theme: Theme = DEFAULT_THEME) -> Panel:
    item = state.focus.items[index]
    focused = index == state.focus.index
    border_style = theme.focused_border if focused else theme.blurred_border

    if item.is_input:
        field = state.fields[item.identifier]
        return Panel(
            build_input_text(field, theme),
            box=box.ROUNDED,
            border_style=border_style,
            padding=(0, 1),
            width=field.width + 4,
        )

    return Panel(
        Text(button_label(item, state, theme)),
        box=box.ROUNDED,
        border_style=border_style,
        padding=(0, 1),
        expand=False,
    )


def build_header(state: UIState, theme: Theme = DEFAULT_THEME) -> Table:
    """Build the search bar with inputs, buttons and the title."""
    header = Table.grid(padding=0)
    cells = [build_header_item(state, i, theme) for i in range(len(state.focus.items))]
    cells.append(Panel(
        Text(TITLE, style=theme.title),
        box=box.ROUNDED,
        border_style=theme.accent,
        padding=0,
        expand=False,
    ))
    for _ in cells:
        header.add_column()
    header.add_row(*cells)
    return header

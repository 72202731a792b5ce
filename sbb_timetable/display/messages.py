"""Loading, error and empty-result messages for the results column."""

from rich.text import Text

from ..config import DEFAULT_THEME, Theme
from ..state import UIState

LOADING_MESSAGE = "Searching connections..."
EMPTY_MESSAGE = "No connections found for the specified route."
WELCOME_MESSAGE = "Enter stations above to see timetables"


def build_error_message(error: str, theme: Theme = DEFAULT_THEME) -> Text:
    text = Text("\n  ")
    text.append(error, style=theme.accent)
    return text


def build_status_message(state: UIState, theme: Theme = DEFAULT_THEME) -> Text | None:
    """The message to show in place of (or above) the results, if any."""
    if state.loading:
        return Text(f"\n  {LOADING_MESSAGE}")
    if state.error:
        return build_error_message(state.error, theme)
    if state.connections:
        return None
    if state.searched:
        return Text(f"\n  {EMPTY_MESSAGE}")
    return Text(f"\n  {WELCOME_MESSAGE}", style=theme.placeholder)

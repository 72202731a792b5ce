"""Display rendering components for sbb-timetable."""

from .header import build_header, build_input_text
from .results import build_connection_card, build_connection_cards, build_results_list
from .detail import build_connection_detail
from .messages import build_error_message, build_status_message
from .screen import build_screen

__all__ = [
    "build_header",
    "build_input_text",
    "build_connection_card",
    "build_connection_cards",
    "build_results_list",
    "build_connection_detail",
    "build_error_message",
    "build_status_message",
    "build_screen",
]

"""Keyboard focus cycling across header inputs and buttons."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping

from .inputs import InputField


class ItemKind(Enum):
    INPUT = "input"
    BUTTON = "button"


@dataclass(frozen=True)
class FocusableItem:
    kind: ItemKind
    identifier: str

    @property
    def is_input(self) -> bool:
        return self.kind is ItemKind.INPUT

    @property
    def is_button(self) -> bool:
        return self.kind is ItemKind.BUTTON


# Visual order of the header, which is also the tab order
HEADER_ORDER = (
    FocusableItem(ItemKind.INPUT, "from"),
    FocusableItem(ItemKind.INPUT, "to"),
    FocusableItem(ItemKind.BUTTON, "swap"),
    FocusableItem(ItemKind.BUTTON, "isArrivalTime"),
    FocusableItem(ItemKind.INPUT, "date"),
    FocusableItem(ItemKind.INPUT, "time"),
    FocusableItem(ItemKind.BUTTON, "search"),
)


class FocusManager:
    """
    Owns the fixed item order and the focused index.

    Inputs are wired by identifier, never by position: after every
    transition exactly the field whose identifier matches the current
    item is focused, and none when a button holds focus.
    """

    def __init__(self, items=HEADER_ORDER, fields: Mapping[str, InputField] | None = None):
        if not items:
            raise ValueError("FocusManager needs at least one item")
        self.items = tuple(items)
        self.index = 0
        self.fields: Mapping[str, InputField] = fields or {}
        self.sync_inputs()

    @property
    def current(self) -> FocusableItem:
        return self.items[self.index]

    def advance(self) -> FocusableItem:
        self.index = (self.index + 1) % len(self.items)
        self.sync_inputs()
        return self.current

    def retreat(self) -> FocusableItem:
        self.index = (self.index - 1 + len(self.items)) % len(self.items)
        self.sync_inputs()
        return self.current

    def sync_inputs(self) -> None:
        current = self.current
        for item in self.items:
            if not item.is_input or item.identifier not in self.fields:
                continue
            field = self.fields[item.identifier]
            if current.is_input and item.identifier == current.identifier:
                field.focus()
            else:
                field.blur()

    def focused_field(self) -> InputField | None:
        if self.current.is_input:
            return self.fields.get(self.current.identifier)
        return None

    def activate(self, actions: Mapping[str, Callable[[], object]]):
        """
        Run the action bound to the focused button.

        Inputs have no action (typing goes to the field instead). A button
        without a bound action raises KeyError.
        """
        if self.current.is_input:
            return None
        return actions[self.current.identifier]()

"""Single-line text field editor used for the header inputs."""

from .config import STATION_CHAR_LIMIT
from .masks import is_rune


class InputField:
    """Raw text buffer with a cursor, a character limit and a placeholder."""

    def __init__(
        self,
        identifier: str,
        placeholder: str = "",
        char_limit: int = STATION_CHAR_LIMIT,
        width: int = 20,
    ):
        self.identifier = identifier
        self.placeholder = placeholder
        self.char_limit = char_limit
        self.width = width
        self.value = ""
        self.cursor = 0
        self.focused = False

    def __repr__(self) -> str:
        return f"InputField({self.identifier!r}, value={self.value!r}, cursor={self.cursor})"

    def set_value(self, value: str) -> None:
        self.value = value[:self.char_limit]
        self.cursor = len(self.value)

    def set_cursor(self, position: int) -> None:
        self.cursor = max(0, min(position, len(self.value)))

    def insert(self, text: str) -> None:
        room = self.char_limit - len(self.value)
        if room <= 0:
            return
        text = text[:room]
        self.value = self.value[:self.cursor] + text + self.value[self.cursor:]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor == 0:
            return
        self.value = self.value[:self.cursor - 1] + self.value[self.cursor:]
        self.cursor -= 1

    def delete(self) -> None:
        self.value = self.value[:self.cursor] + self.value[self.cursor + 1:]

    def handle_key(self, key: str) -> bool:
        """Apply an editing key. Returns False for keys the editor ignores."""
        if is_rune(key):
            self.insert(key)
        elif key == "backspace":
            self.backspace()
        elif key == "delete":
            self.delete()
        elif key == "left":
            self.set_cursor(self.cursor - 1)
        elif key == "right":
            self.set_cursor(self.cursor + 1)
        elif key in ("home", "ctrl+a"):
            self.set_cursor(0)
        elif key in ("end", "ctrl+e"):
            self.set_cursor(len(self.value))
        elif key == "ctrl+u":
            self.value = self.value[self.cursor:]
            self.cursor = 0
        else:
            return False
        return True

    def focus(self) -> None:
        self.focused = True

    def blur(self) -> None:
        self.focused = False

"""
Keystroke masks for the date (YYYY-MM-DD) and time (HH:MM) fields.

Each mask looks at the field's current text and one incoming key and
decides whether the key is accepted as typed, accepted with a rewrite of
the whole buffer (separator insertion, two-character backspace), or
rejected. Masks assume the digits are appended at the end of the buffer.
"""

from dataclasses import dataclass
from enum import Enum

DATE_FIELD = "date"
TIME_FIELD = "time"

BACKSPACE = "backspace"


class MaskAction(Enum):
    ACCEPT = "accept"
    TRANSFORM = "transform"
    REJECT = "reject"


@dataclass(frozen=True)
class MaskResult:
    action: MaskAction
    text: str | None = None
    cursor: int | None = None


ACCEPT = MaskResult(MaskAction.ACCEPT)
REJECT = MaskResult(MaskAction.REJECT)


def is_rune(key: str) -> bool:
    """Single printable character, as opposed to a named key like 'tab'."""
    return len(key) == 1 and key.isprintable()


def _transform(text: str) -> MaskResult:
    return MaskResult(MaskAction.TRANSFORM, text=text, cursor=len(text))


def _tens_and_units_ok(tens: str, units: str, max_tens: str, max_units_at_max: str) -> bool:
    """Two-digit calendar component: not 00, not above max_tens/max_units_at_max."""
    if tens == "0" and units == "0":
        return False
    if tens == max_tens and units > max_units_at_max:
        return False
    return True


def mask_date(text: str, key: str) -> MaskResult:
    """Mask for YYYY-MM-DD. Month is 01..12, day is 01..31."""
    length = len(text)

    if key == BACKSPACE:
        if length in (5, 8):
            return _transform(text[:-2])
        return ACCEPT

    if not is_rune(key):
        return ACCEPT
    if not ("0" <= key <= "9"):
        return REJECT

    if length == 0:
        return ACCEPT if key <= "2" else REJECT
    if length in (1, 2, 3):
        return ACCEPT
    if length == 4:
        # month tens digit behind an inserted separator
        if key > "1":
            return REJECT
        return _transform(text + "-" + key)
    if length == 5:
        return ACCEPT if key <= "1" else REJECT
    if length == 6:
        return ACCEPT if _tens_and_units_ok(text[5], key, "1", "2") else REJECT
    if length == 7:
        # day tens digit behind an inserted separator
        if key > "3":
            return REJECT
        return _transform(text + "-" + key)
    if length == 8:
        return ACCEPT if key <= "3" else REJECT
    if length == 9:
        return ACCEPT if _tens_and_units_ok(text[8], key, "3", "1") else REJECT
    return REJECT


def mask_time(text: str, key: str) -> MaskResult:
    """Mask for HH:MM on a 24 hour clock."""
    length = len(text)

    if key == BACKSPACE:
        if length == 3:
            return _transform(text[:-2])
        return ACCEPT

    if not is_rune(key):
        return ACCEPT
    if not ("0" <= key <= "9"):
        return REJECT

    if length == 0:
        return ACCEPT if key <= "2" else REJECT
    if length == 1:
        if text == "2" and key > "3":
            return REJECT
        return ACCEPT
    if length == 2:
        # minute tens digit behind an inserted separator
        if key > "5":
            return REJECT
        return _transform(text + ":" + key)
    if length == 3:
        return ACCEPT if key <= "5" else REJECT
    if length == 4:
        return ACCEPT
    return REJECT


MASKS = {
    DATE_FIELD: mask_date,
    TIME_FIELD: mask_time,
}


def apply_mask(field_id: str, text: str, key: str) -> MaskResult:
    """Run the mask for field_id; unmasked fields accept everything."""
    mask = MASKS.get(field_id)
    if mask is None:
        return ACCEPT
    return mask(text, key)

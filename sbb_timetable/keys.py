"""Terminal keyboard input, decoded into key names like 'tab' or 'shift+tab'."""

import os
import select
import sys
from contextlib import contextmanager

# Escape sequences and control bytes, longest first so prefixes don't win
KEY_SEQUENCES = {
    "\x1b[3~": "delete",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1b[Z": "shift+tab",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\t": "tab",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\x01": "ctrl+a",
    "\x03": "ctrl+c",
    "\x05": "ctrl+e",
    "\x15": "ctrl+u",
    "\x1b": "esc",
}

_SORTED_SEQUENCES = sorted(KEY_SEQUENCES, key=len, reverse=True)


def decode_keys(data: str) -> list[str]:
    """
    Split a chunk read from the terminal into key names.

    Printable characters come back as themselves; unknown escape sequences
    are dropped whole.
    """
    keys = []
    i = 0
    while i < len(data):
        for seq in _SORTED_SEQUENCES:
            if data.startswith(seq, i):
                if seq == "\x1b" and data.startswith("\x1b[", i):
                    # unrecognised CSI sequence: skip up to its final byte
                    end = i + 2
                    while end < len(data) and not ("@" <= data[end] <= "~"):
                        end += 1
                    i = end + 1
                    break
                keys.append(KEY_SEQUENCES[seq])
                i += len(seq)
                break
        else:
            char = data[i]
            if char.isprintable():
                keys.append(char)
            i += 1
    return keys


@contextmanager
def cbreak_terminal(fd: int | None = None):
    """
    Put the terminal in cbreak mode for the duration of the block: keys
    arrive unbuffered and unechoed, output processing stays on.
    """
    import termios
    import tty

    if fd is None:
        fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield fd
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def read_keys(fd: int, timeout: float) -> list[str]:
    """Wait up to timeout seconds for input on fd and decode whatever arrived."""
    ready, _, _ = select.select([fd], [], [], timeout)
    if not ready:
        return []
    data = os.read(fd, 1024)
    if not data:
        raise EOFError("terminal closed")
    return decode_keys(data.decode("utf-8", errors="ignore"))

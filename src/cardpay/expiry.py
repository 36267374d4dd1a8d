"""
Keystroke-level entry of a card expiry date in ``MM/yy`` form.

:class:`ExpiryEntry` is a small state machine fed one key at a time.
It knows nothing about terminals: callers translate whatever their
input source produces into keys, where ``"\\b"``/``"\\x7f"`` mean
backspace and ``"\\r"``/``"\\n"`` confirm the entry.

    entry = ExpiryEntry()
    for key in "1229":
        entry.press(key)
    entry.text   # "12/29"
"""

from __future__ import annotations

from datetime import date, datetime

from .exceptions import CardValidationError

SEPARATOR = "/"
EXPIRY_LENGTH = 5  # MM/yy
DIGITS = frozenset("0123456789")
BACKSPACE_KEYS = frozenset({"\b", "\x7f"})
CONFIRM_KEYS = frozenset({"\r", "\n"})


class ExpiryEntry:
    """Accumulates digits, inserts the separator and handles backspace."""

    def __init__(self) -> None:
        self._buffer = ""
        self._confirmed = False

    @property
    def text(self) -> str:
        return self._buffer

    @property
    def confirmed(self) -> bool:
        return self._confirmed

    def press(self, key: str) -> bool:
        """Apply one key.  Returns True once the entry has been confirmed.

        Keys arriving after confirmation are ignored.
        """
        if self._confirmed:
            return True
        if key in CONFIRM_KEYS:
            self._confirmed = True
        elif key in BACKSPACE_KEYS:
            self._backspace()
        elif key in DIGITS and len(self._buffer) < EXPIRY_LENGTH:
            self._buffer += key
            if len(self._buffer) == 2:
                self._buffer += SEPARATOR
        # anything else, including non-ASCII digits, is ignored
        return self._confirmed

    def _backspace(self) -> None:
        if self._buffer.endswith(SEPARATOR):
            # the separator was inserted for us, so drop the digit before it too
            self._buffer = self._buffer[:-2]
        else:
            self._buffer = self._buffer[:-1]

    def feed(self, keys: str) -> str:
        """Press every key in ``keys``, then confirm.  Returns the entered text."""
        for key in keys:
            if self.press(key):
                break
        self._confirmed = True
        return self._buffer


def parse_expiry(text: str) -> date:
    """Turn a finished ``MM/yy`` string into the first day of that month.

    Raises:
        CardValidationError: If ``text`` is empty, not exactly five
            characters or not a real month/year.
    """
    if not text:
        raise CardValidationError("Expiry date cannot be empty")
    if len(text) != EXPIRY_LENGTH:
        raise CardValidationError("Invalid expiry date, expected MM/yy")
    try:
        return datetime.strptime(text, "%m/%y").date()
    except ValueError:
        raise CardValidationError("Invalid expiry date, expected MM/yy")


def read_expiry(keys: str) -> date:
    """Run ``keys`` through a fresh :class:`ExpiryEntry` and parse the result."""
    return parse_expiry(ExpiryEntry().feed(keys))

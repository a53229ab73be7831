"""Translate raw `readchar` key sequences into the navigator's key names."""
from __future__ import annotations

import readchar

NAMED_KEYS = {
    readchar.key.ENTER: "enter",
    readchar.key.CR: "enter",
    readchar.key.LF: "enter",
    readchar.key.ESC: "esc",
    readchar.key.BACKSPACE: "backspace",
    "\x08": "backspace",
    readchar.key.UP: "up",
    readchar.key.DOWN: "down",
}

# Second byte of CSI / SS3 sequences (arrows, function keys)
_SEQUENCE_INTRODUCERS = ("[", "O")


def _single(raw: str) -> str | None:
    if raw in NAMED_KEYS:
        return NAMED_KEYS[raw]
    if len(raw) == 1 and raw.isprintable():
        return raw
    return None


def translate_keys(raw: str) -> list[str]:
    """Return the key names carried by one `readkey()` result.

    Names are "enter", "esc", "backspace", "up", "down" or a printable char.

    On POSIX `readkey()` reads one more character after a lone Esc, so
    Esc then `j` arrives as "\\x1bj" and Esc Esc as "\\x1b\\x1b". Those
    come back as two keys. Other escape sequences (function keys) are dropped.
    """
    key = _single(raw)
    if key is not None:
        return [key]

    if len(raw) == 2 and raw[0] == readchar.key.ESC and raw[1] not in _SEQUENCE_INTRODUCERS:
        keys = ["esc"]
        trailing = _single(raw[1])
        if trailing is not None:
            keys.append(trailing)
        return keys
    return []

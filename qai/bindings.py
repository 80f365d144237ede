"""Key name to terminal escape sequence mapping.

Users pick the trigger key by name in their config file (``tab``,
``ctrl-space``, ``f1`` ...) instead of writing raw ``bindkey``
sequences.  This module holds the fixed registry that maps those
names to the sequences understood by zsh's ``bindkey`` builtin.

Lookup is forward only.  Several names may share one sequence, e.g.
``tab`` and ``ctrl-i`` both map to ``^I`` because terminals cannot
tell them apart.
"""

from __future__ import annotations

from typing import Dict, List

from .errors import UnknownKeyError


KEY_MAP: Dict[str, str] = {
    # Tab and Enter
    "tab": "^I",
    "enter": "^M",
    "return": "^M",
    # Escape
    "escape": "^[",
    "esc": "^[",
    "backspace": "^?",
    # Ctrl + special
    "ctrl-space": "^@",
    "ctrl-backslash": "^\\",
    "ctrl-]": "^]",
    "ctrl-^": "^^",
    "ctrl-_": "^_",
    # Function keys (xterm)
    "f1": "^[OP",
    "f2": "^[OQ",
    "f3": "^[OR",
    "f4": "^[OS",
    "f5": "^[[15~",
    "f6": "^[[17~",
    "f7": "^[[18~",
    "f8": "^[[19~",
    "f9": "^[[20~",
    "f10": "^[[21~",
    "f11": "^[[23~",
    "f12": "^[[24~",
    # Arrows
    "up": "^[[A",
    "down": "^[[B",
    "right": "^[[C",
    "left": "^[[D",
    # Navigation
    "home": "^[[H",
    "end": "^[[F",
    "insert": "^[[2~",
    "delete": "^[[3~",
    "page-up": "^[[5~",
    "pageup": "^[[5~",
    "page-down": "^[[6~",
    "pagedown": "^[[6~",
}

# ctrl-a .. ctrl-z; ctrl-i is Tab and ctrl-m is Enter
for _letter in "abcdefghijklmnopqrstuvwxyz":
    KEY_MAP[f"ctrl-{_letter}"] = "^" + _letter.upper()
del _letter


def normalize_key_name(name: str) -> str:
    """Return ``name`` lowercased with spaces turned into hyphens."""
    return name.strip().lower().replace(" ", "-")


def valid_key_names() -> List[str]:
    """Return every known key name, sorted."""
    return sorted(KEY_MAP)


def key_name_to_sequence(name: str) -> str:
    """Convert a friendly key name to a zsh ``bindkey`` sequence.

    :param name: Key name such as ``"tab"``, ``"Ctrl Space"`` or ``"F1"``.
    :returns: The escape sequence, e.g. ``"^I"``.
    :raises UnknownKeyError: When the name is not in the registry.  The
      error message lists every valid name.
    """
    try:
        return KEY_MAP[normalize_key_name(name)]
    except KeyError:
        raise UnknownKeyError(name, valid_key_names()) from None

"""Parsing of model replies into command candidates.

In multi-result mode the model is asked to answer in two sections::

    MODERN:
    fd -e rs
    STANDARD:
    find . -name '*.rs'

Models do not always follow the format, so the parser is forgiving:
it never rejects input.  Anything that is not a section marker, a
blank line, a ``#`` comment or a code fence becomes a candidate, and
lines seen before any marker land in the standard bucket.  A plain
unmarked reply therefore parses to a standard-only response, and a
reply with only a modern section has its commands moved to standard
so the standard bucket is never empty for a non-blank reply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Category(str, Enum):
    MODERN = "modern"
    STANDARD = "standard"


@dataclass(frozen=True)
class CommandCandidate:
    text: str
    category: Category
    origin_order: int


@dataclass
class ParsedResponse:
    """Candidates split by category, each list in reply order."""

    modern: List[CommandCandidate] = field(default_factory=list)
    standard: List[CommandCandidate] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.modern and not self.standard

    def __len__(self) -> int:
        return len(self.modern) + len(self.standard)

    @property
    def modern_commands(self) -> List[str]:
        return [c.text for c in self.modern]

    @property
    def standard_commands(self) -> List[str]:
        return [c.text for c in self.standard]


def _section_marker(line: str):
    lower = line.lower()
    if lower.startswith("modern:"):
        return Category.MODERN
    if lower.startswith("standard:"):
        return Category.STANDARD
    return None


def _is_noise(line: str) -> bool:
    return not line or line.startswith("#") or line.startswith("```")


def parse_response(raw: str, multi: bool = True) -> ParsedResponse:
    """Split a model reply into modern and standard candidates.

    :param raw: The reply text, possibly with MODERN:/STANDARD: markers.
    :param multi: When false (single-result mode) every command goes to
      the standard bucket; markers are still dropped.
    :returns: A :class:`ParsedResponse`.  Never raises.
    """
    parsed = ParsedResponse()
    section = Category.STANDARD
    order = 0
    for raw_line in raw.splitlines():
        line = raw_line.strip()
        marker = _section_marker(line)
        if marker is not None:
            # Text after an inline marker ("MODERN: fd") is ignored.
            if multi:
                section = marker
            continue
        if _is_noise(line):
            continue
        candidate = CommandCandidate(line, section, order)
        order += 1
        if section is Category.MODERN:
            parsed.modern.append(candidate)
        else:
            parsed.standard.append(candidate)

    if parsed.is_empty():
        # Nothing looked like a command: offer every non-blank line.
        lines = [line.strip() for line in raw.splitlines() if line.strip()]
        parsed.standard = [
            CommandCandidate(line, Category.STANDARD, i) for i, line in enumerate(lines)
        ]
    elif not parsed.standard:
        # A modern-only reply still has to offer standard commands.
        parsed.standard = [
            CommandCandidate(c.text, Category.STANDARD, c.origin_order) for c in parsed.modern
        ]
        parsed.modern = []
    return parsed


def presentation_order(parsed: ParsedResponse) -> List[str]:
    """Return all commands, modern first, then standard."""
    return parsed.modern_commands + parsed.standard_commands

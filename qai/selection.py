"""Choosing one command out of several.

When ``fzf`` is installed and there is more than one candidate the
user picks interactively.  ``fzf`` draws on the terminal directly, so
this works even when qai's own standard output is captured by a shell
widget.  Without ``fzf`` the first candidate wins.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, List, Optional, Sequence


logger = logging.getLogger(__name__)

FZF_ARGS = ["--height=10", "--reverse", "--prompt=Select command: "]

Picker = Callable[[Sequence[str]], Optional[str]]


def picker_available() -> bool:
    return shutil.which("fzf") is not None


def fzf_pick(candidates: Sequence[str]) -> Optional[str]:
    """Run ``fzf`` over ``candidates``.

    :returns: The selected line, or ``None`` if the user cancelled or
      ``fzf`` failed.  Both cases are treated the same.
    """
    try:
        proc = subprocess.run(
            ["fzf", *FZF_ARGS],
            input="\n".join(candidates) + "\n",
            stdout=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        logger.warning("Failed to run fzf: %s", exc)
        return None
    selected = proc.stdout.strip() if proc.stdout else ""
    if proc.returncode != 0 or not selected:
        logger.info("fzf selection cancelled (exit %s)", proc.returncode)
        return None
    return selected


def default_picker() -> Optional[Picker]:
    """Return :func:`fzf_pick` when ``fzf`` is installed, else ``None``."""
    return fzf_pick if picker_available() else None


def select_command(
    candidates: Sequence[str],
    picker: Optional[Picker] = None,
) -> Optional[str]:
    """Resolve ``candidates`` to a single command.

    :param candidates: Commands in presentation order.
    :param picker: Interactive picker to use for more than one
      candidate, or ``None`` for deterministic first-candidate selection.
    :returns: The chosen command or ``None`` on cancel / no candidates.
    """
    items: List[str] = [c for c in candidates if c]
    if not items:
        return None
    if picker is not None and len(items) > 1:
        return picker(items)
    return items[0]

"""Tool discovery and availability filtering.

Models like to suggest modern replacements (``fd``, ``rg``, ``eza``)
that may not be installed.  :class:`ToolCache` remembers which
binaries exist on ``PATH`` so suggestions can be filtered without
probing the filesystem on every query.

The cache is stored as JSON in ``$XDG_CACHE_HOME/qai/tools.json``::

    {"available": ["fd", "rg"], "unavailable": ["eza"], "version": 1}

Several shells may flush the cache at the same time, so it is always
written to a temporary file and moved into place.  A file that is
missing, corrupt or written by another cache version is treated as
empty rather than as an error.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from .config import cache_dir
from .errors import CacheError
from .response import ParsedResponse


logger = logging.getLogger(__name__)

# Always present on a Unix system; never advertised as "modern".
STANDARD_TOOLS = frozenset([
    "ls", "cat", "grep", "find", "awk", "sed", "sort", "uniq", "head", "tail",
    "cut", "wc", "du", "df", "ps", "top", "chmod", "chown", "cp", "mv", "rm",
    "mkdir", "rmdir", "curl", "wget", "tar", "gzip", "gunzip", "zip", "unzip",
    "echo", "printf", "test", "true", "false", "cd", "pwd", "env", "export",
    "source", "sh", "bash", "zsh",
])

# Probed by ``qai tools --refresh``.
MODERN_TOOLS = (
    "eza", "bat", "fd", "rg", "zoxide", "dust", "duf", "procs", "btop",
    "delta", "sd", "jq", "yq", "fzf", "http", "tldr", "hyperfine", "tokei",
    "lazygit", "gh",
)

# Process wrappers skipped when looking for the real binary.
SKIP_WORDS = frozenset(["sudo", "env", "time", "nice", "nohup", "strace", "ltrace", "doas"])


def extract_binary(command: str) -> Optional[str]:
    """Return the primary binary of a command line.

    Skips ``NAME=value`` assignments, flags, numeric arguments (``nice
    -n 10 make``) and the wrappers in :data:`SKIP_WORDS`.

    >>> extract_binary("sudo env FOO=1 make -j4")
    'make'
    """
    for word in command.split():
        if "=" in word or word.startswith("-") or word[0].isdigit():
            continue
        if word in SKIP_WORDS:
            continue
        return word
    return None


def default_cache_path() -> Path:
    return cache_dir() / "tools.json"


@dataclass
class ToolStats:
    available_count: int
    unavailable_count: int
    modern_tools_count: int


class ToolCache:
    """Cache of binary availability, persisted between sessions."""

    CACHE_VERSION = 1

    def __init__(
        self,
        available: Optional[Iterable[str]] = None,
        unavailable: Optional[Iterable[str]] = None,
        path: Optional[Path] = None,
    ) -> None:
        self.available: Set[str] = set(available or ())
        self.unavailable: Set[str] = set(unavailable or ())
        self.version = self.CACHE_VERSION
        self.dirty = False
        self.path = path

    @classmethod
    def load(cls) -> "ToolCache":
        return cls.load_from(default_cache_path())

    @classmethod
    def load_from(cls, path: Path) -> "ToolCache":
        """Load a cache file, returning an empty cache on any problem."""
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return cls(path=path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable tool cache %s: %s", path, exc)
            return cls(path=path)

        version = data.get("version") if isinstance(data, dict) else None
        # bool is an int subclass and 1.0 == 1; only an exact int matches.
        if type(version) is not int or version != cls.CACHE_VERSION:
            logger.info("Resetting tool cache %s: version mismatch", path)
            return cls(path=path)
        available = data.get("available") or []
        unavailable = data.get("unavailable") or []
        if not isinstance(available, list) or not isinstance(unavailable, list):
            logger.warning("Ignoring malformed tool cache %s", path)
            return cls(path=path)
        return cls(
            (str(name) for name in available),
            (str(name) for name in unavailable),
            path=path,
        )

    def save(self) -> None:
        self.save_to(self.path or default_cache_path())

    def save_to(self, path: Path) -> None:
        """Write the cache if it changed, replacing the file atomically.

        :raises CacheError: If the directory or file cannot be written.
        """
        if not self.dirty:
            return
        path = Path(path)
        content = json.dumps(
            {
                "available": sorted(self.available),
                "unavailable": sorted(self.unavailable),
                "version": self.version,
            },
            indent=2,
        )
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=".tools.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise CacheError(f"Failed to write tool cache {path}: {exc}") from exc
        self.dirty = False

    def is_available(self, binary: str) -> bool:
        if binary in self.available:
            return True
        if binary in self.unavailable:
            return False

        exists = shutil.which(binary) is not None
        if exists:
            self.available.add(binary)
        else:
            self.unavailable.add(binary)
        self.dirty = True
        logger.debug("Probed %s: %s", binary, "available" if exists else "missing")
        return exists

    def filter_commands(self, commands: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Partition commands into ``(available, unavailable)``.

        A command whose binary cannot be extracted is kept as available.
        """
        available: List[str] = []
        unavailable: List[str] = []
        for command in commands:
            binary = extract_binary(command)
            if binary is None or self.is_available(binary):
                available.append(command)
            else:
                unavailable.append(command)
        return available, unavailable

    def process_response(self, response: ParsedResponse) -> List[str]:
        """Return the filtered commands in presentation order.

        Falls back to the unfiltered standard commands when filtering
        leaves nothing, so a non-empty reply never yields zero options.
        """
        modern, _ = self.filter_commands(response.modern_commands)
        standard, _ = self.filter_commands(response.standard_commands)
        result = modern + standard
        if not result:
            return list(response.standard_commands)
        return result

    def refresh(self, tools: Iterable[str] = MODERN_TOOLS) -> None:
        """Forget everything and probe ``tools`` again."""
        self.clear()
        for tool in tools:
            self.is_available(tool)

    def clear(self) -> None:
        self.available.clear()
        self.unavailable.clear()
        self.dirty = True

    def modern_tools(self) -> List[str]:
        return sorted(t for t in self.available if t not in STANDARD_TOOLS)

    def available_tools_for_prompt(self) -> str:
        """Prompt hint listing installed modern tools, or ``""``."""
        modern = self.modern_tools()
        if not modern:
            return ""
        return (
            f"User has these modern tools installed: {', '.join(modern)}\n"
            "Prefer these when appropriate.\n"
        )

    def stats(self) -> ToolStats:
        return ToolStats(
            available_count=len(self.available),
            unavailable_count=len(self.unavailable),
            modern_tools_count=len(self.modern_tools()),
        )

"""System prompt loading and rendering.

The system prompt is a plain text template with double-brace
placeholders: ``{{shell}}``, ``{{os}}``, ``{{cwd}}`` and ``{{tools}}``.
The template shipped in ``qai/data/system.pmt`` is used unless
``$XDG_CONFIG_HOME/qai/prompts/system.pmt`` exists.
"""

from __future__ import annotations

import logging
import os
import platform
from dataclasses import dataclass, field
from pathlib import Path

from .config import config_dir
from .errors import ConfigurationError


logger = logging.getLogger(__name__)

PLACEHOLDERS = ("shell", "os", "cwd", "tools")


def _default_shell() -> str:
    return os.environ.get("SHELL") or "bash"


def _default_os() -> str:
    return platform.system().lower() or "unknown"


def _default_cwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return "."


@dataclass
class PromptContext:
    """Values substituted into the system prompt."""

    shell: str = field(default_factory=_default_shell)
    os: str = field(default_factory=_default_os)
    cwd: str = field(default_factory=_default_cwd)
    tools: str = ""


def builtin_prompt_path() -> Path:
    return Path(__file__).parent / "data" / "system.pmt"


def user_prompt_path() -> Path:
    return config_dir() / "prompts" / "system.pmt"


def load_prompt_from_file(path: Path) -> str:
    logger.info("Loading prompt from: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Failed to read prompt file: {path}: {exc}") from exc


def load_system_prompt() -> str:
    """Return the user override if present, else the bundled template."""
    override = user_prompt_path()
    if override.exists():
        return load_prompt_from_file(override)
    logger.debug("Using bundled default prompt")
    return load_prompt_from_file(builtin_prompt_path())


def render_prompt(template: str, context: PromptContext) -> str:
    """Substitute ``{{name}}`` placeholders; single braces are left alone."""
    rendered = template
    for name in PLACEHOLDERS:
        rendered = rendered.replace("{{" + name + "}}", getattr(context, name))
    return rendered


def single_instructions() -> str:
    return "\nReturn exactly one line containing a single command.\n"


def multi_instructions(count: int) -> str:
    """Response format for multi-result queries.

    The reply is split into a MODERN: section (commands relying on
    modern replacements such as fd, rg or eza) and a STANDARD: section
    (POSIX tools that are always available).  The STANDARD: section
    must never be empty.
    """
    return (
        f"\nReturn up to {count} alternative commands, one per line, in two sections:\n"
        "MODERN:\n"
        "<commands using modern tools, only if they fit; may be empty>\n"
        "STANDARD:\n"
        "<commands using standard Unix tools; at least one>\n"
        "Do not number the commands and do not add any other text.\n"
    )

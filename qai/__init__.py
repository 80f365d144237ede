"""Top-level package for qai.

``qai`` turns natural language requests into shell commands without
leaving the prompt.  Typing ``ai`` and pressing the trigger key (Tab
by default) switches the zsh line editor into an "AI mode"; the next
line is sent to a chat-completion model and the suggested command is
written back into the edit buffer.

The shell integration is generated by :mod:`qai.shell`, the session
logic lives in :mod:`qai.session`, and model replies are parsed by
:mod:`qai.response` and filtered against the installed binaries
tracked by :mod:`qai.tools`.  Install the integration with::

    eval "$(qai shell-init zsh)"
"""

__version__ = "0.3.0"

__all__ = [
    "api",
    "bindings",
    "cli",
    "config",
    "errors",
    "logging_utils",
    "prompt",
    "query",
    "response",
    "selection",
    "session",
    "shell",
    "tools",
]

"""Shell integration scripts.

``qai shell-init zsh`` prints a script meant to be evaluated from
``.zshrc``::

    eval "$(qai shell-init zsh)"

The script installs ZLE widgets implementing the AI mode state machine
described in :mod:`qai.session`:

* the trigger key starts AI mode when the buffer is exactly ``ai`` and
  otherwise runs whatever widget was bound to that key before;
* Enter submits the query through ``qai complete`` while in AI mode and
  otherwise runs the widget previously bound to Enter;
* Ctrl-C leaves AI mode through ``TRAPINT``, chaining to an existing
  ``TRAPINT`` when there was one.

Sourcing the script again is harmless: previous bindings are captured
only once and our own widgets are never captured as the fallback.
"""

from __future__ import annotations

from typing import List, Optional

from .bindings import key_name_to_sequence
from .config import Config
from .session import AI_PROMPT


SUPPORTED_SHELLS = ("zsh",)

ZSH_TEMPLATE = r"""
# qai - Natural language to shell commands via AI
# Add to your .zshrc: eval "$(qai shell-init zsh)"
# Trigger key: {trigger_name} ({trigger_seq})
# Submit key: {submit_name} ({submit_seq})

# State: are we in AI mode?
typeset -g _qai_in_ai_mode=0
typeset -g _qai_saved_prompt=""
typeset -g _qai_ai_prompt="{ai_prompt}"

# _qai_capture_widget <var> <sequence> <default>
# Store the widget currently bound to <sequence> in <var>, once.
_qai_capture_widget() {{
    local var="$1" seq="$2" default="$3" binding widget=""
    [[ -n "${{(P)var}}" ]] && return 0
    binding="$(bindkey "$seq" 2>/dev/null)"
    if [[ "$binding" == *'" '* ]]; then
        widget="${{binding##*\" }}"
    fi
    case "$widget" in
        ""|undefined-key|_qai_*) widget="$default" ;;
    esac
    typeset -g "$var=$widget"
}}

_qai_capture_widget _qai_original_trigger_widget '{trigger_seq}' expand-or-complete
_qai_capture_widget _qai_original_submit_widget '{submit_seq}' accept-line

# Keep an existing TRAPINT so Ctrl-C outside AI mode behaves as before
if (( ${{+functions[TRAPINT]}} )) && (( ! ${{+functions[_qai_previous_trapint]}} )) \
    && [[ "${{functions[TRAPINT]}}" != *_qai_in_ai_mode* ]]; then
    functions[_qai_previous_trapint]="${{functions[TRAPINT]}}"
fi

# Trigger key: start AI mode on "ai", otherwise run the original widget
_qai_trigger_handler() {{
    if [[ "$BUFFER" == "ai" && $_qai_in_ai_mode -eq 0 ]]; then
        _qai_start
    else
        zle "${{_qai_original_trigger_widget:-expand-or-complete}}"
    fi
}}

# Enter AI mode after checking the API is reachable (no token usage)
_qai_start() {{
    local validation_result
    validation_result=$({qai} validate-api 2>&1)
    local exit_code=$?

    if [[ $exit_code -ne 0 ]]; then
        BUFFER=""
        CURSOR=0
        zle -M "❌ $validation_result"
        return 1
    fi

    _qai_in_ai_mode=1
    _qai_saved_prompt="$PROMPT"
    PROMPT="$_qai_ai_prompt"
    BUFFER=""
    CURSOR=0
    zle reset-prompt
}}

# Back to normal mode with the saved prompt
_qai_restore_prompt() {{
    _qai_in_ai_mode=0
    PROMPT="$_qai_saved_prompt"
    zle reset-prompt
}}

# Leave AI mode, discarding the query
_qai_exit() {{
    if [[ $_qai_in_ai_mode -eq 1 ]]; then
        BUFFER=""
        CURSOR=0
        _qai_restore_prompt
    fi
}}

# Enter key: submit the query in AI mode, otherwise the original widget
_qai_submit() {{
    if [[ $_qai_in_ai_mode -ne 1 ]]; then
        zle "${{_qai_original_submit_widget:-accept-line}}"
        return
    fi

    local query="$BUFFER"
    if [[ -z "$query" ]]; then
        # Empty query cancels
        _qai_exit
        return
    fi

    zle -M "🔄 Fetching..."

    local result exit_code error_text
    local error_file="${{TMPDIR:-/tmp}}/qai-$$-error"
    result=$({qai} complete -- "$query" 2>"$error_file")
    exit_code=$?
    error_text="$(<"$error_file")" 2>/dev/null
    rm -f "$error_file"

    if [[ $exit_code -eq 0 && -n "$result" ]]; then
        BUFFER="$result"
        CURSOR=${{#BUFFER}}
        _qai_restore_prompt
        zle -M ""
    else
        # Error, timeout or cancelled selection: keep the query text
        _qai_restore_prompt
        zle -M "${{error_text:-❌ No results}}"
    fi
}}

# TRAPINT handles Ctrl-C at signal level (the only reliable way in zsh).
# BUFFER is read-only here; the interrupted line is discarded anyway.
TRAPINT() {{
    if [[ $_qai_in_ai_mode -eq 1 ]]; then
        _qai_in_ai_mode=0
        PROMPT="$_qai_saved_prompt"
        print ""
        zle && zle reset-prompt
        return 128
    fi
    if (( ${{+functions[_qai_previous_trapint]}} )); then
        _qai_previous_trapint "$@"
        return $?
    fi
    return $((128 + $1))
}}

# Register widgets (redefining is idempotent)
zle -N _qai_trigger_handler
zle -N _qai_start
zle -N _qai_exit
zle -N _qai_submit

# Bind keys
bindkey '{trigger_seq}' _qai_trigger_handler
bindkey '{submit_seq}' _qai_submit
"""


def generate_zsh_init_script(config: Config, qai_command: str = "qai") -> str:
    """Render the zsh integration script.

    Pure function of its arguments: the same configuration always gives
    the same text.

    :param config: Configuration providing the key bindings.
    :param qai_command: Shell words used to call qai from the widgets,
      e.g. ``"qai --config ~/qai.yml"``.
    :raises UnknownKeyError: If a bound key name is unknown.  Nothing is
      rendered in that case.
    """
    bindings = config.bindings
    trigger_seq = key_name_to_sequence(bindings.trigger)
    submit_seq = key_name_to_sequence(bindings.submit)

    return ZSH_TEMPLATE.format(
        trigger_name=bindings.trigger,
        trigger_seq=trigger_seq,
        submit_name=bindings.submit,
        submit_seq=submit_seq,
        ai_prompt=AI_PROMPT,
        qai=qai_command,
    )


def generate_init_script(shell: str, config: Config, qai_command: str = "qai") -> Optional[str]:
    """Return the init script for ``shell``, or ``None`` if unsupported.

    :raises UnknownKeyError: See :func:`generate_zsh_init_script`.
    """
    if shell.lower() == "zsh":
        return generate_zsh_init_script(config, qai_command)
    return None


def supported_shells() -> List[str]:
    return list(SUPPORTED_SHELLS)

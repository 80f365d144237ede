"""AI mode session state machine.

A session belongs to one interactive shell.  It starts in
:attr:`ModeState.NORMAL`; typing ``ai`` and pressing the trigger key
enters :attr:`ModeState.AI_MODE` (after a credential probe), the next
submitted line is sent to the command generator, and the chosen
command is written back into the edit buffer.

State table::

    NORMAL    --trigger, buffer == "ai", probe ok-->  AI_MODE
    NORMAL    --trigger, probe fails-------------->  NORMAL (buffer cleared)
    NORMAL    --trigger, other buffer------------->  NORMAL (fallback widget)
    AI_MODE   --submit, empty buffer-------------->  NORMAL
    AI_MODE   --submit---------------------------->  FETCHING
    AI_MODE   --interrupt------------------------->  NORMAL (buffer cleared)
    FETCHING  --error / empty / timeout----------->  NORMAL (buffer untouched)
    FETCHING  --several candidates and a picker--->  SELECTING
    FETCHING  --one candidate or no picker-------->  SELECTED
    SELECTING --cancel---------------------------->  NORMAL (buffer untouched)
    SELECTING --pick------------------------------>  SELECTED
    SELECTED  ------------------------------------>  NORMAL (buffer replaced)

Every path back to NORMAL from AI mode restores the prompt saved on
entry.  The editor itself is abstracted by :class:`LineEditor`; the
zsh widgets generated by :mod:`qai.shell` mirror the same table.
"""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .errors import CacheError, FetchError, FetchTimeout, QaiError
from .response import parse_response, presentation_order
from .selection import Picker, select_command
from .tools import ToolCache


logger = logging.getLogger(__name__)

AI_TRIGGER_TEXT = "ai"
AI_PROMPT = "🤖 ai> "


class ModeState(Enum):
    NORMAL = "normal"
    AI_MODE = "ai_mode"
    FETCHING = "fetching"
    SELECTING = "selecting"
    SELECTED = "selected"


@dataclass
class QueryRequest:
    text: str
    multi: bool = False
    count: int = 5
    cwd: Optional[str] = None
    context: Dict[str, str] = field(default_factory=dict)


@dataclass
class LineEditor:
    """In-memory stand-in for the line editor's state.

    ``messages`` collects the transient notices that zsh would show
    below the prompt with ``zle -M``.
    """

    buffer: str = ""
    cursor: int = 0
    prompt: str = ""
    messages: List[str] = field(default_factory=list)

    def message(self, text: str) -> None:
        self.messages.append(text)


Widget = Callable[[LineEditor], None]
Fetcher = Callable[[QueryRequest], str]
Probe = Callable[[], None]


def _noop_widget(editor: LineEditor) -> None:
    return None


class ProcessFetcher:
    """Run ``qai query`` as a child process for each request.

    The child is killed once ``timeout`` seconds pass.
    """

    def __init__(self, argv: Sequence[str], timeout: float = 30.0) -> None:
        self.argv = list(argv)
        self.timeout = timeout

    def build_command(self, request: QueryRequest) -> List[str]:
        command = self.argv + ["query"]
        if request.multi:
            command += ["--multi", "-n", str(request.count)]
        return command + ["--", request.text]

    def __call__(self, request: QueryRequest) -> str:
        command = self.build_command(request)
        logger.debug("Running %s", command)
        try:
            proc = subprocess.run(
                command,
                cwd=request.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise FetchTimeout(f"Timed out after {self.timeout:g}s") from exc
        except OSError as exc:
            raise FetchError(f"Failed to run {command[0]}: {exc}") from exc

        if proc.returncode != 0:
            message = (proc.stderr or "").strip() or f"query exited with status {proc.returncode}"
            raise FetchError(message)
        if not proc.stdout.strip():
            raise FetchError("No results")
        return proc.stdout


class AiModeSession:
    """Controller for one shell session's AI mode.

    :param editor: The line editor state this session drives.
    :param fetcher: Turns a :class:`QueryRequest` into raw model text;
      raises :class:`~qai.errors.FetchError` on failure.
    :param fallback: Widget bound to the trigger key before qai was
      installed.  Captured once and reused for every non-AI press.
    :param accept_line: Widget run by submit outside AI mode.
    :param probe: Credential check run before entering AI mode, or
      ``None`` when the caller has already verified access.
    :param picker: Interactive picker, or ``None`` to take the first
      candidate.
    :param cache: Tool cache used to drop commands whose binary is
      missing.
    """

    def __init__(
        self,
        editor: LineEditor,
        fetcher: Fetcher,
        fallback: Widget = _noop_widget,
        accept_line: Widget = _noop_widget,
        probe: Optional[Probe] = None,
        picker: Optional[Picker] = None,
        cache: Optional[ToolCache] = None,
        count: int = 5,
        ai_prompt: str = AI_PROMPT,
    ) -> None:
        self.editor = editor
        self.fetcher = fetcher
        self._fallback = fallback
        self._accept_line = accept_line
        self.probe = probe
        self.picker = picker
        self.cache = cache
        self.count = count
        self.ai_prompt = ai_prompt
        self._state = ModeState.NORMAL
        self._saved_prompt: Optional[str] = None
        self.chosen: Optional[str] = None

    @property
    def state(self) -> ModeState:
        return self._state

    @property
    def fallback(self) -> Widget:
        return self._fallback

    def _set_state(self, state: ModeState) -> None:
        logger.debug("AI mode: %s -> %s", self._state.value, state.value)
        self._state = state

    # Events

    def press_trigger(self) -> None:
        if self._state is ModeState.NORMAL and self.editor.buffer == AI_TRIGGER_TEXT:
            self._start()
        else:
            self._fallback(self.editor)

    def submit(self) -> None:
        if self._state is not ModeState.AI_MODE:
            self._accept_line(self.editor)
            return

        query = self.editor.buffer
        if not query.strip():
            self._leave_ai_mode(clear_buffer=True)
            return
        self._fetch_and_select(query)

    def interrupt(self) -> bool:
        """Handle Ctrl-C.  Returns ``False`` when not in AI mode."""
        if self._state is not ModeState.AI_MODE:
            return False
        self._leave_ai_mode(clear_buffer=True)
        return True

    # Transitions

    def _start(self) -> None:
        if self.probe is not None:
            try:
                self.probe()
            except QaiError as exc:
                logger.warning("AI mode probe failed: %s", exc)
                self.editor.message(f"❌ {exc}")
                self.editor.buffer = ""
                self.editor.cursor = 0
                return

        self._saved_prompt = self.editor.prompt
        self.editor.prompt = self.ai_prompt
        self.editor.buffer = ""
        self.editor.cursor = 0
        self.chosen = None
        self._set_state(ModeState.AI_MODE)

    def _leave_ai_mode(self, clear_buffer: bool) -> None:
        if self._saved_prompt is not None:
            self.editor.prompt = self._saved_prompt
        self._saved_prompt = None
        if clear_buffer:
            self.editor.buffer = ""
            self.editor.cursor = 0
        self._set_state(ModeState.NORMAL)

    def _fetch_and_select(self, query: str) -> None:
        self._set_state(ModeState.FETCHING)
        self.editor.message("🔄 Fetching...")
        request = QueryRequest(
            text=query,
            multi=self.picker is not None,
            count=self.count,
            cwd=os.getcwd(),
        )
        try:
            raw = self.fetcher(request)
        except FetchError as exc:
            logger.warning("Query failed: %s", exc)
            self.editor.message(f"❌ {exc}")
            self._leave_ai_mode(clear_buffer=False)
            return

        candidates = self._candidates(raw, request.multi)
        if not candidates:
            self.editor.message("❌ No results")
            self._leave_ai_mode(clear_buffer=False)
            return

        if self.picker is not None and len(candidates) > 1:
            self._set_state(ModeState.SELECTING)
        chosen = select_command(candidates, self.picker)
        if chosen is None:
            self.editor.message("Cancelled")
            self._leave_ai_mode(clear_buffer=False)
            return

        self._set_state(ModeState.SELECTED)
        self._apply(chosen)

    def _candidates(self, raw: str, multi: bool) -> List[str]:
        parsed = parse_response(raw, multi=multi)
        if self.cache is None:
            return presentation_order(parsed)
        candidates = self.cache.process_response(parsed)
        try:
            self.cache.save()
        except CacheError as exc:
            logger.warning("%s", exc)
        return candidates

    def _apply(self, command: str) -> None:
        self.chosen = command
        self.editor.buffer = command
        self.editor.cursor = len(command)
        self.editor.message("")
        self._leave_ai_mode(clear_buffer=False)

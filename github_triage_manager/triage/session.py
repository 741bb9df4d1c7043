"""Work/break session cycle backed by a single JSON state file.

Each invocation toggles the mode exactly once. Entering work selects the
next issue; entering break advances a cyclic pointer into the break
suggestions. The resulting state is written before results are reported.
A failed write keeps the state in memory on the SessionContext for the rest
of the process; it never fails the toggle.

Only one instance is expected to run at a time: the state file is read and
then written without any locking.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import structlog
from pydantic import ValidationError

from github_triage_manager.exceptions import InputValidationError, IssueFetchError, StatePersistenceError
from github_triage_manager.github.abc import IssueTrackerBase
from github_triage_manager.triage.models import SessionMode, SessionState, TriageIssue
from github_triage_manager.triage.priority import fetch_open_issues, sanitize_for_terminal, select_next_issue
from github_triage_manager.utils.constants import NO_BREAK_SUGGESTIONS_MESSAGE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

WORK_STARTED_MESSAGE = "Break over. Time to work!"
BREAK_STARTED_MESSAGE = "Work session complete. Time for a break!"


@dataclass
class SessionContext:
    """Where the session state lives, plus the in-memory copy used once a write has failed."""

    state_path: Path
    in_memory_state: SessionState | None = None

    @property
    def using_in_memory_state(self) -> bool:
        """Whether reads are served from memory instead of the state file."""
        return self.in_memory_state is not None


@dataclass
class SessionCycleResult:
    """What one toggle of the session cycle produced."""

    previous_mode: SessionMode
    state: SessionState
    message: str
    issue: TriageIssue | None = None
    suggestion: str | None = None
    fetch_error: str | None = None
    persisted: bool = True
    details: list[str] = field(default_factory=list)

    @property
    def mode(self) -> SessionMode:
        """The mode the cycle moved into."""
        return self.state.mode


def _write_state_file(state_path: Path, state: SessionState) -> None:
    """Write the state atomically: a temporary sibling file replaces the target."""
    temporary_path = state_path.with_name(f".{state_path.name}.tmp")
    try:
        temporary_path.write_text(state.to_json(), encoding="utf-8")
        os.replace(temporary_path, state_path)
    except OSError as exc:
        raise StatePersistenceError(f"Could not write session state to {state_path}: {exc}") from exc


def write_state(context: SessionContext, state: SessionState) -> bool:
    """Persist the state, falling back to memory on failure.

    Returns:
        True if the state reached the file, False if only the in-memory copy holds it.
    """
    try:
        _write_state_file(context.state_path, state)
    except StatePersistenceError as exc:
        logger.error("Failed to persist session state, continuing with in-memory state", state_path=str(context.state_path), error=str(exc))
        context.in_memory_state = state.model_copy()
        return False
    if context.using_in_memory_state:
        context.in_memory_state = state.model_copy()
    logger.debug("Session state updated", state_path=str(context.state_path), mode=state.mode.value, last_break_index=state.last_break_index)
    return True


def read_state(context: SessionContext) -> SessionState:
    """Return the current state.

    The in-memory copy wins when present. A missing or corrupt state file
    yields the default state (break mode, no break shown yet), which is
    written back.
    """
    if context.in_memory_state is not None:
        logger.debug("Using in-memory session state")
        return context.in_memory_state.model_copy()

    try:
        content = context.state_path.read_text(encoding="utf-8")
        return SessionState.model_validate_json(content)
    except FileNotFoundError:
        logger.info("No session state file, creating default state", state_path=str(context.state_path))
    except (OSError, ValidationError) as exc:
        logger.warning("Unreadable session state file, resetting to default state", state_path=str(context.state_path), error=str(exc))

    state = SessionState()
    write_state(context, state)
    return state


def toggle_session_mode(state: SessionState) -> SessionState:
    """Return the state with its mode flipped."""
    return state.model_copy(update={"mode": state.mode.opposite})


def update_break_index(state: SessionState, index: int) -> SessionState:
    """Return the state pointing at the break suggestion most recently shown."""
    if isinstance(index, bool) or not isinstance(index, int) or index < -1:
        raise InputValidationError(f"Invalid break index value: {index!r}")
    return state.model_copy(update={"last_break_index": index})


def advance_break_index(last_break_index: int, suggestion_count: int) -> int:
    """Next position in the cyclic suggestion list, or -1 when the list is empty."""
    if suggestion_count <= 0:
        return -1
    return (max(last_break_index, -1) + 1) % suggestion_count


def next_break_suggestion(last_break_index: int, suggestions: Sequence[str]) -> tuple[int, str]:
    """The index the break pointer advances to and the suggestion found there.

    An empty list yields index -1 and the "no suggestions" sentinel.
    """
    if not suggestions:
        return -1, NO_BREAK_SUGGESTIONS_MESSAGE
    index = advance_break_index(last_break_index, len(suggestions))
    return index, suggestions[index]


async def _start_work_session(context: SessionContext, state: SessionState, tracker: IssueTrackerBase) -> SessionCycleResult:
    new_state = toggle_session_mode(state)
    persisted = write_state(context, new_state)
    result = SessionCycleResult(previous_mode=state.mode, state=new_state, message=WORK_STARTED_MESSAGE, persisted=persisted)

    try:
        issues = await fetch_open_issues(tracker)
    except IssueFetchError as exc:
        result.fetch_error = str(exc)
        result.details.append("Could not fetch open issues to work on.")
        return result

    result.issue = select_next_issue(issues)
    if result.issue is None:
        result.details.append("No open issues available to work on.")
    else:
        result.details.append(f"Your next task: {sanitize_for_terminal(result.issue.title)} - {result.issue.html_url or 'No URL'}")
    return result


def _start_break_session(context: SessionContext, state: SessionState, suggestions: Sequence[str]) -> SessionCycleResult:
    index, suggestion = next_break_suggestion(state.last_break_index, suggestions)
    new_state = update_break_index(toggle_session_mode(state), index)
    persisted = write_state(context, new_state)
    detail = f"Try this break activity: {suggestion}" if suggestions else suggestion
    return SessionCycleResult(
        previous_mode=state.mode,
        state=new_state,
        message=BREAK_STARTED_MESSAGE,
        suggestion=suggestion,
        persisted=persisted,
        details=[detail],
    )


async def run_session_cycle(context: SessionContext, tracker: IssueTrackerBase, suggestions: Sequence[str]) -> SessionCycleResult:
    """Toggle the session once and report what the new session holds."""
    state = read_state(context)
    logger.info("Cycling session", current_mode=state.mode.value, last_break_index=state.last_break_index)
    if state.mode is SessionMode.BREAK:
        return await _start_work_session(context, state, tracker)
    return _start_break_session(context, state, suggestions)

"""Critique Session State Machine.

Tracks the lifecycle of one critique request from trigger to resolution.

States:
    IDLE: Nothing requested yet (or reset)
    LOADING: Request in flight
    SUCCEEDED: Critique text available
    FAILED: Request failed, user-facing error available

Valid Transitions:
    IDLE → LOADING
    LOADING → SUCCEEDED | FAILED
    SUCCEEDED/FAILED → LOADING (re-trigger)
    SUCCEEDED/FAILED → IDLE (reset)

Usage:
    session = CritiqueSession()
    session.add_listener(lambda old, new: print(new.phase))

    session.begin()                  # IDLE → LOADING
    session.succeed("### Impact...") # LOADING → SUCCEEDED
"""

from __future__ import annotations

import asyncio
import inspect
import uuid
from dataclasses import dataclass, replace
from enum import StrEnum
from functools import partial
from typing import Awaitable, Callable, Optional, Union

import structlog

from portfolio_critic.core.exceptions import InvalidStateTransition

log = structlog.get_logger()


class CritiquePhase(StrEnum):
    """Critique session phases."""

    IDLE = "IDLE"
    LOADING = "LOADING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


VALID_TRANSITIONS: frozenset[tuple[CritiquePhase, CritiquePhase]] = frozenset([
    (CritiquePhase.IDLE, CritiquePhase.LOADING),
    (CritiquePhase.LOADING, CritiquePhase.SUCCEEDED),
    (CritiquePhase.LOADING, CritiquePhase.FAILED),
    (CritiquePhase.SUCCEEDED, CritiquePhase.LOADING),
    (CritiquePhase.FAILED, CritiquePhase.LOADING),
    (CritiquePhase.SUCCEEDED, CritiquePhase.IDLE),
    (CritiquePhase.FAILED, CritiquePhase.IDLE),
])


def is_valid_transition(from_phase: CritiquePhase, to_phase: CritiquePhase) -> bool:
    """Check if a phase transition is valid."""
    return (from_phase, to_phase) in VALID_TRANSITIONS


def get_valid_targets(from_phase: CritiquePhase) -> set[CritiquePhase]:
    """Get all phases reachable from a given phase."""
    return {to for (frm, to) in VALID_TRANSITIONS if frm == from_phase}


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of the session for presentation.

    Attributes:
        phase: Current phase.
        text: Critique text; empty unless SUCCEEDED.
        error: User-facing error; set only when FAILED.
        panel_visible: Whether the critique panel has been revealed.
    """

    phase: CritiquePhase = CritiquePhase.IDLE
    text: str = ""
    error: Optional[str] = None
    panel_visible: bool = False


# Listeners get (old_state, new_state); sync or async
StateChangeListener = Callable[[SessionState, SessionState], Union[None, Awaitable[None]]]


class CritiqueSession:
    """Single mutable critique session.

    Only the controller writes to it; observers read `state` or
    register listeners. Invalid transitions raise InvalidStateTransition.
    """

    def __init__(self, session_id: Optional[str] = None) -> None:
        self._session_id = session_id or uuid.uuid4().hex[:12]
        self._state = SessionState()
        self._listeners: list[StateChangeListener] = []

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> SessionState:
        """Current snapshot."""
        return self._state

    @property
    def phase(self) -> CritiquePhase:
        return self._state.phase

    def add_listener(self, callback: StateChangeListener) -> None:
        """Add a state change listener (sync or async)."""
        self._listeners.append(callback)

    def remove_listener(self, callback: StateChangeListener) -> None:
        """Remove a state change listener.

        Raises:
            ValueError: If callback is not registered.
        """
        self._listeners.remove(callback)

    def begin(self) -> None:
        """Enter LOADING, clear prior text and error, reveal the panel."""
        self._transition(
            CritiquePhase.LOADING, text="", error=None, panel_visible=True
        )

    def succeed(self, text: str) -> None:
        """Enter SUCCEEDED with the critique text."""
        self._transition(CritiquePhase.SUCCEEDED, text=text, error=None)

    def fail(self, message: str) -> None:
        """Enter FAILED with a user-facing message. Clears any text."""
        self._transition(CritiquePhase.FAILED, text="", error=message)

    def reset(self) -> None:
        """Return a settled session to IDLE and hide the panel."""
        self._transition(
            CritiquePhase.IDLE, text="", error=None, panel_visible=False
        )

    def _transition(self, to_phase: CritiquePhase, **changes: object) -> None:
        old_state = self._state
        from_phase = old_state.phase

        if not is_valid_transition(from_phase, to_phase):
            raise InvalidStateTransition(
                session_id=self._session_id,
                from_state=str(from_phase),
                to_state=str(to_phase),
            )

        self._state = replace(old_state, phase=to_phase, **changes)

        log.info(
            "critique_phase_changed",
            session_id=self._session_id,
            from_phase=str(from_phase),
            to_phase=str(to_phase),
        )

        self._notify_listeners(old_state, self._state)

    def _notify_listeners(self, old_state: SessionState, new_state: SessionState) -> None:
        """Notify listeners. Listener exceptions are logged, never raised."""
        for listener in self._listeners:
            try:
                if inspect.iscoroutinefunction(listener):
                    try:
                        loop = asyncio.get_running_loop()
                        task = loop.create_task(listener(old_state, new_state))
                        task.add_done_callback(
                            partial(self._handle_async_exception, session_id=self._session_id)
                        )
                    except RuntimeError:
                        log.warning("async_listener_no_loop", session_id=self._session_id)
                else:
                    listener(old_state, new_state)  # type: ignore
            except Exception as e:
                log.warning(
                    "state_listener_error",
                    session_id=self._session_id,
                    error=str(e),
                )

    @staticmethod
    def _handle_async_exception(task: asyncio.Task, session_id: str) -> None:
        """Callback to log exceptions from async listeners."""
        try:
            task.result()
        except asyncio.CancelledError:
            pass
        except Exception as e:
            log.warning(
                "state_listener_error",
                session_id=session_id,
                error=str(e),
                async_task=True,
            )

"""Unit tests for the Critique Session State Machine.

Tests cover:
- CritiquePhase enum (4 phases, string values)
- VALID_TRANSITIONS and helpers
- CritiqueSession:
  - Initial state is IDLE with hidden panel
  - begin/succeed/fail/reset update the snapshot
  - Invalid transitions raise InvalidStateTransition
  - Listeners (sync and async) are notified; their errors don't propagate
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from portfolio_critic.core.exceptions import InvalidStateTransition
from portfolio_critic.critique.session import (
    VALID_TRANSITIONS,
    CritiquePhase,
    CritiqueSession,
    SessionState,
    get_valid_targets,
    is_valid_transition,
)


class TestCritiquePhase:
    def test_all_phases_defined(self) -> None:
        assert set(CritiquePhase) == {
            CritiquePhase.IDLE,
            CritiquePhase.LOADING,
            CritiquePhase.SUCCEEDED,
            CritiquePhase.FAILED,
        }

    def test_phases_are_strings(self) -> None:
        for phase in CritiquePhase:
            assert str(phase) == phase.name


class TestValidTransitions:
    def test_transition_count(self) -> None:
        assert len(VALID_TRANSITIONS) == 7

    def test_no_terminal_phase(self) -> None:
        for phase in CritiquePhase:
            assert get_valid_targets(phase), f"{phase} has no exits"

    def test_loading_only_settles(self) -> None:
        assert get_valid_targets(CritiquePhase.LOADING) == {
            CritiquePhase.SUCCEEDED,
            CritiquePhase.FAILED,
        }

    @pytest.mark.parametrize(
        "from_phase,to_phase",
        [
            (CritiquePhase.IDLE, CritiquePhase.SUCCEEDED),
            (CritiquePhase.IDLE, CritiquePhase.FAILED),
            (CritiquePhase.LOADING, CritiquePhase.LOADING),
            (CritiquePhase.LOADING, CritiquePhase.IDLE),
            (CritiquePhase.SUCCEEDED, CritiquePhase.FAILED),
        ],
    )
    def test_invalid_pairs(self, from_phase, to_phase) -> None:
        assert not is_valid_transition(from_phase, to_phase)


class TestCritiqueSession:
    def test_initial_state(self) -> None:
        session = CritiqueSession(session_id="s-1")
        assert session.session_id == "s-1"
        assert session.state == SessionState()
        assert session.phase is CritiquePhase.IDLE
        assert session.state.panel_visible is False

    def test_generated_session_id(self) -> None:
        assert CritiqueSession().session_id != CritiqueSession().session_id

    def test_begin_reveals_panel_and_clears(self) -> None:
        session = CritiqueSession()
        session.begin()
        session.fail("boom")
        session.begin()

        assert session.state == SessionState(
            phase=CritiquePhase.LOADING, text="", error=None, panel_visible=True
        )

    def test_succeed(self) -> None:
        session = CritiqueSession()
        session.begin()
        session.succeed("### Impact\nGood.")

        assert session.phase is CritiquePhase.SUCCEEDED
        assert session.state.text == "### Impact\nGood."
        assert session.state.error is None

    def test_fail_clears_previous_text(self) -> None:
        session = CritiqueSession()
        session.begin()
        session.succeed("old critique")
        session.begin()
        session.fail("Failed")

        assert session.phase is CritiquePhase.FAILED
        assert session.state.text == ""
        assert session.state.error == "Failed"

    def test_reset_hides_panel(self) -> None:
        session = CritiqueSession()
        session.begin()
        session.succeed("text")
        session.reset()

        assert session.state == SessionState()

    def test_invalid_transition_raises(self) -> None:
        session = CritiqueSession(session_id="s-2")
        with pytest.raises(InvalidStateTransition) as exc_info:
            session.succeed("too early")

        assert exc_info.value.from_state == "IDLE"
        assert exc_info.value.to_state == "SUCCEEDED"
        assert session.phase is CritiquePhase.IDLE

    def test_double_begin_raises(self) -> None:
        session = CritiqueSession()
        session.begin()
        with pytest.raises(InvalidStateTransition):
            session.begin()

    def test_snapshots_are_independent(self) -> None:
        session = CritiqueSession()
        before = session.state
        session.begin()
        assert before.phase is CritiquePhase.IDLE


class TestListeners:
    def test_sync_listener_receives_old_and_new(self) -> None:
        session = CritiqueSession()
        listener = MagicMock()
        session.add_listener(listener)

        session.begin()

        old, new = listener.call_args.args
        assert old.phase is CritiquePhase.IDLE
        assert new.phase is CritiquePhase.LOADING

    def test_removed_listener_not_called(self) -> None:
        session = CritiqueSession()
        listener = MagicMock()
        session.add_listener(listener)
        session.remove_listener(listener)

        session.begin()

        listener.assert_not_called()

    def test_remove_unknown_listener_raises(self) -> None:
        with pytest.raises(ValueError):
            CritiqueSession().remove_listener(MagicMock())

    def test_listener_error_does_not_propagate(self) -> None:
        session = CritiqueSession()
        good = MagicMock()
        session.add_listener(MagicMock(side_effect=RuntimeError("bad listener")))
        session.add_listener(good)

        session.begin()

        assert session.phase is CritiquePhase.LOADING
        good.assert_called_once()

    async def test_async_listener_runs_on_loop(self) -> None:
        session = CritiqueSession()
        seen: list[CritiquePhase] = []

        async def listener(old: SessionState, new: SessionState) -> None:
            seen.append(new.phase)

        session.add_listener(listener)
        session.begin()
        await asyncio.sleep(0)

        assert seen == [CritiquePhase.LOADING]

    async def test_async_listener_error_is_contained(self) -> None:
        session = CritiqueSession()

        async def listener(old: SessionState, new: SessionState) -> None:
            raise RuntimeError("async boom")

        session.add_listener(listener)
        session.begin()
        await asyncio.sleep(0)

        assert session.phase is CritiquePhase.LOADING

    def test_async_listener_without_loop_is_skipped(self) -> None:
        session = CritiqueSession()
        called = False

        async def listener(old: SessionState, new: SessionState) -> None:
            nonlocal called
            called = True

        session.add_listener(listener)
        session.begin()

        assert called is False
        assert session.phase is CritiquePhase.LOADING

"""Unit tests for ranker state machine."""

import pytest

from src.ranker.state_machine import RankerState, RankerStateError, RankerStateMachine


class TestRankerStateMachine:
    """Tests for RankerStateMachine."""

    def test_initial_state(self) -> None:
        """State machine starts in CANDIDATES_READY."""
        sm = RankerStateMachine(run_id="test-run")

        assert sm.state == RankerState.CANDIDATES_READY

    def test_full_lifecycle(self) -> None:
        """Complete state machine lifecycle."""
        sm = RankerStateMachine(run_id="test-run")
        sm.to_scored()
        sm.to_ranked()
        sm.to_selected()

        assert sm.state == RankerState.SELECTED

    def test_cannot_skip_ranking(self) -> None:
        """SCORED -> SELECTED is invalid."""
        sm = RankerStateMachine(run_id="test-run")
        sm.to_scored()

        with pytest.raises(RankerStateError) as exc_info:
            sm.to_selected()

        assert exc_info.value.from_state == RankerState.SCORED
        assert exc_info.value.to_state == RankerState.SELECTED

    def test_selected_is_terminal(self) -> None:
        """No transition leaves SELECTED."""
        sm = RankerStateMachine(run_id="test-run")
        sm.to_scored()
        sm.to_ranked()
        sm.to_selected()

        with pytest.raises(RankerStateError):
            sm.to_scored()

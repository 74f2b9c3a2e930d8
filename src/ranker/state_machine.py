"""State machine for one weekly selection run."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class RankerState(str, Enum):
    """State of a selection run.

    - CANDIDATES_READY: Snapshot of candidates taken
    - SCORED: Metrics and composite scores computed
    - RANKED: Candidates sorted with tie-breaks applied
    - SELECTED: Top pick and slates chosen
    """

    CANDIDATES_READY = "CANDIDATES_READY"
    SCORED = "SCORED"
    RANKED = "RANKED"
    SELECTED = "SELECTED"


_VALID_TRANSITIONS: dict[RankerState, set[RankerState]] = {
    RankerState.CANDIDATES_READY: {RankerState.SCORED},
    RankerState.SCORED: {RankerState.RANKED},
    RankerState.RANKED: {RankerState.SELECTED},
    RankerState.SELECTED: set(),  # Terminal state
}


class RankerStateError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self, run_id: str, from_state: RankerState, to_state: RankerState
    ) -> None:
        self.run_id = run_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal ranker transition for run '{run_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class RankerStateMachine:
    """Enforces the order of selection phases."""

    def __init__(self, run_id: str) -> None:
        self._run_id = run_id
        self._state = RankerState.CANDIDATES_READY
        self._log = logger.bind(component="ranker", run_id=run_id)

    @property
    def state(self) -> RankerState:
        """Get the current state."""
        return self._state

    def transition_to(self, target: RankerState) -> None:
        """Transition to a new state.

        Raises:
            RankerStateError: If the transition is invalid.
        """
        if target not in _VALID_TRANSITIONS[self._state]:
            self._log.error(
                "invariant_violation",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise RankerStateError(self._run_id, self._state, target)
        self._log.debug(
            "state_transition", from_state=self._state.value, to_state=target.value
        )
        self._state = target

    def to_scored(self) -> None:
        """Transition to SCORED state."""
        self.transition_to(RankerState.SCORED)

    def to_ranked(self) -> None:
        """Transition to RANKED state."""
        self.transition_to(RankerState.RANKED)

    def to_selected(self) -> None:
        """Transition to SELECTED state."""
        self.transition_to(RankerState.SELECTED)

"""State machine for a single submission moving through intake."""

from enum import Enum

import structlog


logger = structlog.get_logger()


class IngestionState(str, Enum):
    """State of one submission during intake.

    States represent the lifecycle of a single submission:
    - RECEIVED: Admitted by the rate limiter and source authentication
    - VALIDATED: Normalized and free of guideline violations
    - DEDUP_CHECKED: No prior record matches
    - ANALYZED: Analyzer output (or the fallback) available
    - CLASSIFIED: Decision, priority and category derived
    - REJECTED: Decided as rejected (violation or duplicate)
    - PERSISTED: Record durably stored
    """

    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    DEDUP_CHECKED = "DEDUP_CHECKED"
    ANALYZED = "ANALYZED"
    CLASSIFIED = "CLASSIFIED"
    REJECTED = "REJECTED"
    PERSISTED = "PERSISTED"


# Valid state transitions
_VALID_TRANSITIONS: dict[IngestionState, set[IngestionState]] = {
    IngestionState.RECEIVED: {IngestionState.VALIDATED, IngestionState.REJECTED},
    IngestionState.VALIDATED: {IngestionState.DEDUP_CHECKED, IngestionState.REJECTED},
    IngestionState.DEDUP_CHECKED: {IngestionState.ANALYZED},
    IngestionState.ANALYZED: {IngestionState.CLASSIFIED},
    # A lost URL claim at persistence turns a classified submission into a duplicate
    IngestionState.CLASSIFIED: {IngestionState.PERSISTED, IngestionState.REJECTED},
    IngestionState.REJECTED: {IngestionState.PERSISTED},
    IngestionState.PERSISTED: set(),  # Terminal state
}


class IngestionStateTransitionError(Exception):
    """Raised when an illegal state transition is attempted."""

    def __init__(
        self,
        submission_id: str,
        from_state: IngestionState,
        to_state: IngestionState,
    ) -> None:
        """Initialize the transition error.

        Args:
            submission_id: Identifier of the submission's record.
            from_state: Current state.
            to_state: Attempted target state.
        """
        self.submission_id = submission_id
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Illegal state transition for submission '{submission_id}': "
            f"{from_state.value} -> {to_state.value}"
        )


class IngestionStateMachine:
    """Manages state transitions for one submission.

    Enforces valid transitions and logs all state changes.
    """

    def __init__(
        self,
        submission_id: str,
        initial_state: IngestionState = IngestionState.RECEIVED,
    ) -> None:
        """Initialize the state machine.

        Args:
            submission_id: Identifier of the record being produced.
            initial_state: Starting state.
        """
        self._submission_id = submission_id
        self._state = initial_state
        self._history: list[IngestionState] = [initial_state]
        self._log = logger.bind(component="intake", submission_id=submission_id)

    @property
    def state(self) -> IngestionState:
        """Get the current state."""
        return self._state

    @property
    def history(self) -> list[IngestionState]:
        """Get every state visited, in order."""
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal."""
        return self._state == IngestionState.PERSISTED

    def can_transition_to(self, target: IngestionState) -> bool:
        """Check if a transition to the target state is valid."""
        return target in _VALID_TRANSITIONS.get(self._state, set())

    def transition_to(self, target: IngestionState) -> None:
        """Transition to a new state.

        Args:
            target: The target state.

        Raises:
            IngestionStateTransitionError: If the transition is invalid.
        """
        if not self.can_transition_to(target):
            self._log.error(
                "invariant_violation",
                from_state=self._state.value,
                to_state=target.value,
            )
            raise IngestionStateTransitionError(
                submission_id=self._submission_id,
                from_state=self._state,
                to_state=target,
            )

        old_state = self._state
        self._state = target
        self._history.append(target)
        self._log.debug(
            "state_transition",
            from_state=old_state.value,
            to_state=target.value,
        )

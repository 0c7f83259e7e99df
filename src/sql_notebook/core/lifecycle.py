"""Entry lifecycle states and allowed transitions."""

from enum import Enum

from sql_notebook.core.exceptions import InvalidTransition


class LifecycleState(str, Enum):
    """States of one submission, from prompt to finished entry."""

    IDLE = "idle"
    CREATING = "creating"  # Notebook/entry being persisted
    STREAMING = "streaming"  # Reads applied to the entry
    FINALIZING = "finalizing"  # Stream ended; persisting result, naming
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.IDLE: frozenset({LifecycleState.CREATING, LifecycleState.FAILED}),
    LifecycleState.CREATING: frozenset({LifecycleState.STREAMING, LifecycleState.FAILED}),
    LifecycleState.STREAMING: frozenset({LifecycleState.FINALIZING, LifecycleState.FAILED}),
    LifecycleState.FINALIZING: frozenset({LifecycleState.DONE, LifecycleState.FAILED}),
    LifecycleState.DONE: frozenset(),
    LifecycleState.FAILED: frozenset(),
}


class EntryLifecycle:
    """Tracks one submission through its states."""

    def __init__(self):
        self.state = LifecycleState.IDLE
        self.history: list[LifecycleState] = [LifecycleState.IDLE]

    @property
    def is_terminal(self) -> bool:
        return self.state in (LifecycleState.DONE, LifecycleState.FAILED)

    def can_transition(self, target: LifecycleState) -> bool:
        return target in _TRANSITIONS[self.state]

    def transition(self, target: LifecycleState) -> None:
        """
        Move to ``target``.

        Raises:
            InvalidTransition: If ``target`` is not reachable from the current state
        """
        if not self.can_transition(target):
            raise InvalidTransition(self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def fail(self) -> None:
        """Move to FAILED unless already terminal."""
        if not self.is_terminal:
            self.transition(LifecycleState.FAILED)

"""State tracking for a single inspection request."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from mypy_annotator.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class InspectionState(Enum):
    REQUESTED = "requested"
    AVAILABILITY_CHECKED = "availability_checked"
    SKIPPED_UNAVAILABLE = "skipped_unavailable"
    PREPARING = "preparing"
    INVOKING = "invoking"
    PARSING = "parsing"
    FILTERING = "filtering"
    DELIVERED = "delivered"
    CLEANED_UP = "cleaned_up"


_TRANSITIONS: dict[InspectionState, set[InspectionState]] = {
    InspectionState.REQUESTED: {InspectionState.AVAILABILITY_CHECKED},
    InspectionState.AVAILABILITY_CHECKED: {
        InspectionState.SKIPPED_UNAVAILABLE,
        InspectionState.PREPARING,
    },
    InspectionState.SKIPPED_UNAVAILABLE: set(),
    InspectionState.PREPARING: {InspectionState.INVOKING, InspectionState.DELIVERED},
    InspectionState.INVOKING: {InspectionState.PARSING},
    InspectionState.PARSING: {InspectionState.FILTERING},
    InspectionState.FILTERING: {InspectionState.DELIVERED},
    InspectionState.DELIVERED: set(),
}


@dataclass
class StateTransition:
    state: InspectionState
    timestamp: float
    detail: str = ""


class InspectionTracker:
    """Record the state machine of one inspection.

    REQUESTED -> AVAILABILITY_CHECKED -> {SKIPPED_UNAVAILABLE |
    PREPARING -> INVOKING -> PARSING -> FILTERING -> DELIVERED} -> CLEANED_UP

    CLEANED_UP is reachable from every other state and is terminal. A worker
    thread that outlives its request may still report progress; anything
    after CLEANED_UP is ignored.
    """

    def __init__(self) -> None:
        self.transitions: list[StateTransition] = [
            StateTransition(InspectionState.REQUESTED, time.monotonic())
        ]
        self.callbacks: list[Callable[[StateTransition], None]] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> InspectionState:
        return self.transitions[-1].state

    @property
    def is_terminal(self) -> bool:
        return self.state is InspectionState.CLEANED_UP

    @property
    def history(self) -> list[InspectionState]:
        return [t.state for t in self.transitions]

    def advance(self, target: InspectionState, detail: str = "") -> bool:
        """Move to *target*. Returns False if the tracker already finished."""
        with self._lock:
            current = self.state
            if current is InspectionState.CLEANED_UP:
                return False
            if target is not InspectionState.CLEANED_UP and target not in _TRANSITIONS[current]:
                raise InvalidTransitionError(current.value, target.value)
            transition = StateTransition(target, time.monotonic(), detail)
            self.transitions.append(transition)
        self._notify(transition)
        return True

    def count(self, state: InspectionState) -> int:
        return sum(1 for t in self.transitions if t.state is state)

    def get_summary(self) -> dict[str, Any]:
        first = self.transitions[0].timestamp
        return {
            "states": [
                {
                    "state": t.state.value,
                    "elapsed": round(t.timestamp - first, 3),
                    "detail": t.detail,
                }
                for t in self.transitions
            ],
            "total_duration": round(self.transitions[-1].timestamp - first, 3),
        }

    def _notify(self, transition: StateTransition) -> None:
        for cb in self.callbacks:
            try:
                cb(transition)
            except Exception:
                logger.debug(
                    "Tracker callback error for state %s", transition.state.value, exc_info=True
                )

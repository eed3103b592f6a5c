"""Email-gate state for the audit tool pages.

idle -> loading -> gated | results, gated -> results on a lead submission,
results -> idle on reset, loading -> idle on failure. The only state kept
between visits is the unlock cookie, which skips the gated step.
"""

from enum import Enum
from typing import Mapping

from fastapi import Response

UNLOCK_COOKIE = "shrink-tools-unlocked"
UNLOCK_MAX_AGE_SECONDS = 30 * 24 * 60 * 60


class ToolState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    GATED = "gated"
    RESULTS = "results"


class ToolEvent(str, Enum):
    SUBMIT = "submit"
    SUCCEED = "succeed"
    FAIL = "fail"
    UNLOCK = "unlock"
    RESET = "reset"


class InvalidTransition(Exception):
    def __init__(self, state: ToolState, event: ToolEvent):
        super().__init__(f"Cannot {event.value} from {state.value}")
        self.state = state
        self.event = event


_TRANSITIONS: dict[tuple[ToolState, ToolEvent], ToolState] = {
    (ToolState.IDLE, ToolEvent.SUBMIT): ToolState.LOADING,
    (ToolState.LOADING, ToolEvent.FAIL): ToolState.IDLE,
    (ToolState.LOADING, ToolEvent.SUCCEED): ToolState.GATED,
    (ToolState.GATED, ToolEvent.UNLOCK): ToolState.RESULTS,
    (ToolState.RESULTS, ToolEvent.RESET): ToolState.IDLE,
}


def next_state(state: ToolState, event: ToolEvent, unlocked: bool = False) -> ToolState:
    """Apply `event` to `state`. A completed analysis skips the gate when unlocked."""
    try:
        target = _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(state, event) from None
    if target is ToolState.GATED and unlocked:
        return ToolState.RESULTS
    return target


def is_unlocked(cookies: Mapping[str, str]) -> bool:
    return bool(cookies.get(UNLOCK_COOKIE))


def remember_unlock(response: Response) -> None:
    """Set the 30-day cookie that lets this browser skip the gate."""
    response.set_cookie(
        UNLOCK_COOKIE,
        "true",
        max_age=UNLOCK_MAX_AGE_SECONDS,
        path="/",
        samesite="lax",
    )

import pytest
from fastapi import Response

from gate import (
    UNLOCK_COOKIE,
    InvalidTransition,
    ToolEvent,
    ToolState,
    is_unlocked,
    next_state,
    remember_unlock,
)


def test_happy_path_through_the_gate():
    state = next_state(ToolState.IDLE, ToolEvent.SUBMIT)
    assert state is ToolState.LOADING
    state = next_state(state, ToolEvent.SUCCEED)
    assert state is ToolState.GATED
    state = next_state(state, ToolEvent.UNLOCK)
    assert state is ToolState.RESULTS
    assert next_state(state, ToolEvent.RESET) is ToolState.IDLE


def test_unlocked_visitor_skips_the_gate():
    assert next_state(ToolState.LOADING, ToolEvent.SUCCEED, unlocked=True) is ToolState.RESULTS


def test_failure_returns_to_idle():
    assert next_state(ToolState.LOADING, ToolEvent.FAIL) is ToolState.IDLE


@pytest.mark.parametrize(
    "state, event",
    [
        (ToolState.IDLE, ToolEvent.UNLOCK),
        (ToolState.GATED, ToolEvent.SUBMIT),
        (ToolState.RESULTS, ToolEvent.SUCCEED),
    ],
)
def test_invalid_transitions(state, event):
    with pytest.raises(InvalidTransition):
        next_state(state, event)


def test_is_unlocked():
    assert is_unlocked({UNLOCK_COOKIE: "true"})
    assert not is_unlocked({})
    assert not is_unlocked({UNLOCK_COOKIE: ""})


def test_remember_unlock_sets_thirty_day_cookie():
    response = Response()
    remember_unlock(response)

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{UNLOCK_COOKIE}=true")
    assert "Max-Age=2592000" in cookie
    assert "Path=/" in cookie
    assert "samesite=lax" in cookie.lower()

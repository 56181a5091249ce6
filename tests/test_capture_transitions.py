from __future__ import annotations

import pytest

from interprete.asr.base import Ended, Error, Result, Started
from interprete.asr.session import (
    CaptureState,
    EmitResult,
    IssueBegin,
    IssueEnd,
    NotifyError,
    SessionSnapshot,
    request_start,
    request_stop,
    transition,
)
from interprete.errors import (
    CapabilityUnsupportedError,
    HardRecognitionError,
    MicrophonePermissionError,
)

S = CaptureState


def snap(state: CaptureState = S.IDLE, intent: bool = False, perm: bool = True, continuous: bool = True):
    return SessionSnapshot(state=state, intent=intent, has_permission=perm, continuous=continuous)


def test_start_from_idle_issues_begin() -> None:
    nxt, cmds = request_start(snap())
    assert nxt.state == S.STARTING
    assert nxt.intent is True
    assert cmds == [IssueBegin()]


def test_start_refused_without_capability_or_permission() -> None:
    with pytest.raises(CapabilityUnsupportedError):
        request_start(snap(S.UNSUPPORTED))
    with pytest.raises(MicrophonePermissionError):
        request_start(snap(perm=False))


def test_start_while_stopping_only_restores_intent() -> None:
    nxt, cmds = request_start(snap(S.STOPPING))
    assert nxt.state == S.STOPPING
    assert nxt.intent is True
    assert cmds == []


def test_stop_while_listening_issues_end() -> None:
    nxt, cmds = request_stop(snap(S.LISTENING, intent=True))
    assert nxt.state == S.STOPPING
    assert nxt.intent is False
    assert cmds == [IssueEnd()]


def test_stop_while_starting_defers_end_until_started() -> None:
    nxt, cmds = request_stop(snap(S.STARTING, intent=True))
    assert (nxt.state, nxt.intent, cmds) == (S.STOPPING, False, [])

    after, cmds = transition(nxt, Started())
    assert after.state == S.STOPPING
    assert cmds == [IssueEnd()]


def test_started_moves_starting_to_listening_and_confirms_permission() -> None:
    nxt, cmds = transition(snap(S.STARTING, intent=True, perm=False), Started())
    assert nxt.state == S.LISTENING
    assert nxt.has_permission is True
    assert cmds == []


def test_started_when_idle_is_ignored() -> None:
    s = snap(S.IDLE)
    assert transition(s, Started()) == (s, [])


def test_results_are_forwarded_only_while_listening() -> None:
    nxt, cmds = transition(snap(S.LISTENING, intent=True), Result("hola", 0.8, True))
    assert nxt.state == S.LISTENING
    assert len(cmds) == 1 and isinstance(cmds[0], EmitResult)
    assert cmds[0].event.text == "hola"
    assert cmds[0].event.is_final is True
    assert cmds[0].event.confidence == 0.8

    assert transition(snap(S.STOPPING), Result("late", 0.9, True))[1] == []


@pytest.mark.parametrize("error_class", ["aborted", "no-speech"])
def test_transient_errors_change_nothing(error_class: str) -> None:
    s = snap(S.LISTENING, intent=True)
    assert transition(s, Error(error_class)) == (s, [])


def test_not_allowed_denies_permission_and_drops_intent() -> None:
    nxt, cmds = transition(snap(S.LISTENING, intent=True), Error("not-allowed"))
    assert nxt.state == S.PERMISSION_DENIED
    assert nxt.intent is False
    assert nxt.has_permission is False
    assert len(cmds) == 1 and isinstance(cmds[0].error, MicrophonePermissionError)

    # The trailing Ended must not restart.
    after, cmds = transition(nxt, Ended())
    assert after.state == S.PERMISSION_DENIED
    assert cmds == []


def test_hard_error_ends_the_cycle() -> None:
    nxt, cmds = transition(snap(S.LISTENING, intent=True), Error("network"))
    assert nxt.state == S.IDLE
    assert nxt.intent is False
    assert len(cmds) == 1
    assert isinstance(cmds[0], NotifyError)
    assert isinstance(cmds[0].error, HardRecognitionError)
    assert cmds[0].error.error_class == "network"

    after, cmds = transition(nxt, Ended())
    assert after.state == S.IDLE
    assert cmds == []


def test_hard_error_when_idle_is_not_reported() -> None:
    s = snap(S.IDLE)
    assert transition(s, Error("network")) == (s, [])


def test_ended_with_intent_restarts_continuous_session() -> None:
    nxt, cmds = transition(snap(S.LISTENING, intent=True), Ended())
    assert nxt.state == S.LISTENING
    assert nxt.intent is True
    assert cmds == [IssueBegin()]


def test_ended_without_intent_goes_idle() -> None:
    nxt, cmds = transition(snap(S.STOPPING, intent=False), Ended())
    assert nxt.state == S.IDLE
    assert cmds == []


def test_ended_in_single_shot_mode_does_not_restart() -> None:
    nxt, cmds = transition(snap(S.LISTENING, intent=True, continuous=False), Ended())
    assert nxt.state == S.IDLE
    assert nxt.intent is False
    assert cmds == []


def test_restart_requested_while_stopping_is_honoured() -> None:
    s, _ = request_start(snap(S.STOPPING, intent=False, continuous=False))
    nxt, cmds = transition(s, Ended())
    assert nxt.state == S.STARTING
    assert cmds == [IssueBegin()]


def test_unsupported_ignores_everything() -> None:
    s = snap(S.UNSUPPORTED, perm=False)
    for ev in (Started(), Result("x"), Error("network"), Ended()):
        assert transition(s, ev) == (s, [])


def test_unknown_event_rejected() -> None:
    with pytest.raises(TypeError):
        transition(snap(), object())  # type: ignore[arg-type]

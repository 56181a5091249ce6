from __future__ import annotations

from interprete.app.diagnostics import (
    hint_for_exception,
    message_for_recognition_error,
    summarize_exception,
    user_message,
)
from interprete.errors import (
    CapabilityUnsupportedError,
    HardRecognitionError,
    InvalidInputError,
    MicrophonePermissionError,
    PipelineExhaustedError,
    ProviderError,
)


def test_summarize_exception_picks_last_meaningful_line() -> None:
    detail = (
        "Traceback (most recent call last):\n"
        '  File "x.py", line 1, in <module>\n'
        "    boom()\n"
        "RuntimeError: failed to start worker"
    )
    assert summarize_exception(detail) == "RuntimeError: failed to start worker"


def test_summarize_exception_truncates_long_line() -> None:
    detail = "ValueError: " + ("x" * 500)
    out = summarize_exception(detail, max_len=60)
    assert out.startswith("ValueError: ")
    assert out.endswith("...")
    assert len(out) <= 60


def test_hint_for_exception_missing_microphone() -> None:
    hint = hint_for_exception("MicError: Failed to open microphone stream.")
    assert "Microphone init failed" in hint


def test_hint_for_exception_default() -> None:
    hint = hint_for_exception("RuntimeError: unknown")
    assert hint == "Check logs for full traceback."


def test_recognition_error_messages() -> None:
    assert "permission" in message_for_recognition_error("not-allowed").lower()
    assert "microphone" in message_for_recognition_error("audio-capture").lower()
    assert message_for_recognition_error("bad-grammar") == "Speech recognition error: bad-grammar"


def test_user_message_per_error_kind() -> None:
    assert user_message(MicrophonePermissionError()) == message_for_recognition_error("not-allowed")
    assert "not supported" in user_message(CapabilityUnsupportedError())
    assert user_message(HardRecognitionError("network")) == message_for_recognition_error("network")
    assert user_message(InvalidInputError("empty")) == "Nothing to translate."
    exhausted = PipelineExhaustedError([ProviderError("lingva", "HTTP 500")])
    assert user_message(exhausted).startswith("Translation failed")

from __future__ import annotations

from interprete.errors import (
    CapabilityUnsupportedError,
    InvalidInputError,
    MicrophonePermissionError,
    PipelineExhaustedError,
    RecognitionError,
)

_RECOGNITION_MESSAGES = {
    "not-allowed": "Microphone permission denied. Allow microphone access and try again.",
    "audio-capture": "Could not capture audio. Check that your microphone is connected.",
    "network": "Network error. Check your internet connection.",
    "service-not-allowed": "Speech recognition service is not available.",
    "start-failed": "Could not start speech recognition.",
}


def message_for_recognition_error(error_class: str) -> str:
    key = str(error_class or "").strip()
    if key in _RECOGNITION_MESSAGES:
        return _RECOGNITION_MESSAGES[key]
    return f"Speech recognition error: {key or 'unknown'}"


def user_message(error: BaseException) -> str:
    """Short notice for an error that reached the coordinator."""
    if isinstance(error, MicrophonePermissionError):
        return _RECOGNITION_MESSAGES["not-allowed"]
    if isinstance(error, CapabilityUnsupportedError):
        return "Speech recognition is not supported on this system."
    if isinstance(error, RecognitionError):
        return message_for_recognition_error(error.error_class)
    if isinstance(error, InvalidInputError):
        return "Nothing to translate."
    if isinstance(error, PipelineExhaustedError):
        return "Translation failed: no provider could translate this text."
    return summarize_exception(str(error))


def summarize_exception(detail: str, *, max_len: int = 220) -> str:
    text = str(detail or "").strip()
    if not text:
        return "Unknown runtime error."
    lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
    for ln in reversed(lines):
        if ln.startswith(("File ", "^", "Traceback ")):
            continue
        out = ln
        break
    else:
        out = lines[-1]
    if len(out) > max_len:
        return out[: max_len - 3].rstrip() + "..."
    return out


def hint_for_exception(summary: str) -> str:
    s = str(summary or "").lower()
    if "no module named" in s:
        return "A required package is missing in this virtualenv. Reinstall dependencies and retry."
    if "config file not found" in s:
        return "Configured JSON file is missing. Update the config path or restore the file."
    if "sounddevice" in s or "microphone stream" in s:
        return "Microphone init failed. Check input device selection and app mic permissions."
    if "argos" in s:
        return "Offline translation models are missing. Remove 'argos' from providers or install them."
    return "Check logs for full traceback."

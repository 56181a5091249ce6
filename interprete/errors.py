from __future__ import annotations

from typing import Sequence


class InterpreteError(RuntimeError):
    pass


class CaptureError(InterpreteError):
    pass


class MicError(CaptureError):
    pass


class MicrophonePermissionError(CaptureError, PermissionError):
    def __init__(self, detail: str = "microphone access denied") -> None:
        super().__init__(detail)


class CapabilityUnsupportedError(CaptureError):
    def __init__(self, detail: str = "speech recognition is not available") -> None:
        super().__init__(detail)


class RecognitionError(CaptureError):
    def __init__(self, error_class: str, detail: str | None = None) -> None:
        self.error_class = str(error_class or "unknown")
        super().__init__(detail or f"recognition error: {self.error_class}")


class TransientRecognitionError(RecognitionError):
    """Aborted or silent recognition cycles; never surfaced to the user."""


class HardRecognitionError(RecognitionError):
    """Any other platform failure; ends the listening cycle."""


TRANSIENT_ERROR_CLASSES = frozenset({"aborted", "no-speech"})
PERMISSION_ERROR_CLASSES = frozenset({"not-allowed"})


def classify_recognition_error(error_class: str) -> CaptureError:
    if error_class in PERMISSION_ERROR_CLASSES:
        return MicrophonePermissionError()
    if error_class in TRANSIENT_ERROR_CLASSES:
        return TransientRecognitionError(error_class)
    return HardRecognitionError(error_class)


class ProviderError(InterpreteError):
    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")


class PipelineExhaustedError(InterpreteError):
    def __init__(self, failures: Sequence[ProviderError] = ()) -> None:
        self.failures = tuple(failures)
        if self.failures:
            tried = ", ".join(f.provider for f in self.failures)
            super().__init__(f"all translation providers failed ({tried})")
        else:
            super().__init__("no translation providers configured")


class InvalidInputError(InterpreteError, ValueError):
    pass

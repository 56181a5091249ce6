# interprete/asr/session.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple, Union

from interprete.asr.base import (
    Ended,
    Error,
    MicrophonePermission,
    PlatformEvent,
    RecognitionCapability,
    RecognizerConfig,
    Result,
    Started,
)
from interprete.contracts import RecognitionEvent
from interprete.errors import (
    CapabilityUnsupportedError,
    CaptureError,
    MicrophonePermissionError,
    TransientRecognitionError,
    classify_recognition_error,
)

logger = logging.getLogger("interprete.capture")


class CaptureState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"
    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"


@dataclass(frozen=True)
class SessionSnapshot:
    state: CaptureState = CaptureState.IDLE
    # What the caller last asked for; decides auto-restart, not `state`.
    intent: bool = False
    has_permission: bool = False
    continuous: bool = True


@dataclass(frozen=True)
class IssueBegin:
    pass


@dataclass(frozen=True)
class IssueEnd:
    pass


@dataclass(frozen=True)
class EmitResult:
    event: RecognitionEvent


@dataclass(frozen=True)
class NotifyError:
    error: CaptureError


Command = Union[IssueBegin, IssueEnd, EmitResult, NotifyError]
Step = Tuple[SessionSnapshot, List[Command]]

_ACTIVE = (CaptureState.STARTING, CaptureState.LISTENING, CaptureState.STOPPING)


def request_start(snap: SessionSnapshot) -> Step:
    if snap.state == CaptureState.UNSUPPORTED:
        raise CapabilityUnsupportedError()
    if not snap.has_permission:
        raise MicrophonePermissionError()
    if snap.state in _ACTIVE:
        # Already running, or stopping: the pending Started/Ended picks the intent up.
        return replace(snap, intent=True), []
    return replace(snap, state=CaptureState.STARTING, intent=True), [IssueBegin()]


def request_stop(snap: SessionSnapshot) -> Step:
    if snap.state == CaptureState.LISTENING:
        return replace(snap, state=CaptureState.STOPPING, intent=False), [IssueEnd()]
    if snap.state == CaptureState.STARTING:
        # end() is issued once the platform confirms the start.
        return replace(snap, state=CaptureState.STOPPING, intent=False), []
    return replace(snap, intent=False), []


def _on_started(snap: SessionSnapshot) -> Step:
    if snap.state == CaptureState.STARTING:
        return replace(snap, state=CaptureState.LISTENING, has_permission=True), []
    if snap.state == CaptureState.LISTENING:
        return replace(snap, has_permission=True), []
    if snap.state == CaptureState.STOPPING:
        if snap.intent:
            return replace(snap, state=CaptureState.LISTENING, has_permission=True), []
        return snap, [IssueEnd()]
    return snap, []


def _on_result(snap: SessionSnapshot, event: Result) -> Step:
    if snap.state != CaptureState.LISTENING:
        return snap, []
    rec = RecognitionEvent(text=event.text, confidence=event.confidence, is_final=event.is_final)
    return snap, [EmitResult(rec)]


def _on_error(snap: SessionSnapshot, event: Error) -> Step:
    error = classify_recognition_error(event.error_class)
    if snap.state == CaptureState.UNSUPPORTED or isinstance(error, TransientRecognitionError):
        return snap, []
    if isinstance(error, MicrophonePermissionError):
        nxt = replace(
            snap,
            state=CaptureState.PERMISSION_DENIED,
            intent=False,
            has_permission=False,
        )
        return nxt, [NotifyError(error)]
    if snap.state not in _ACTIVE:
        return snap, []
    return replace(snap, state=CaptureState.IDLE, intent=False), [NotifyError(error)]


def _on_ended(snap: SessionSnapshot) -> Step:
    if snap.state == CaptureState.UNSUPPORTED:
        return snap, []
    restart = snap.intent and snap.has_permission and (
        snap.continuous or snap.state == CaptureState.STOPPING
    )
    if restart:
        state = CaptureState.LISTENING if snap.state == CaptureState.LISTENING else CaptureState.STARTING
        return replace(snap, state=state), [IssueBegin()]
    if snap.state == CaptureState.PERMISSION_DENIED:
        return replace(snap, intent=False), []
    return replace(snap, state=CaptureState.IDLE, intent=False), []


def transition(snap: SessionSnapshot, event: PlatformEvent) -> Step:
    """Apply one platform event. Pure: returns the next snapshot and the commands to run."""
    if isinstance(event, Started):
        return _on_started(snap)
    if isinstance(event, Result):
        return _on_result(snap, event)
    if isinstance(event, Error):
        return _on_error(snap, event)
    if isinstance(event, Ended):
        return _on_ended(snap)
    raise TypeError(f"unknown platform event: {event!r}")


class CaptureSession:
    """
    Long-lived speech capture around one RecognitionCapability.

    Platform events arrive through post() (safe from any thread) and are
    consumed one at a time by run(). All decisions are made by transition();
    this class only executes the resulting commands.
    """

    def __init__(
        self,
        capability: Optional[RecognitionCapability],
        permission: MicrophonePermission,
        *,
        config: RecognizerConfig = RecognizerConfig(),
        on_result: Optional[Callable[[RecognitionEvent], None]] = None,
        on_error: Optional[Callable[[CaptureError], None]] = None,
    ) -> None:
        self.permission = permission
        self.config = config
        self.on_result = on_result
        self.on_error = on_error
        self._snapshot = SessionSnapshot(continuous=config.continuous)
        self._capability: Optional[RecognitionCapability] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: "Optional[asyncio.Queue[Optional[PlatformEvent]]]" = None
        # Cycles begun on the capability whose Ended has not arrived yet.
        self._open_cycles = 0
        if capability is None:
            self._snapshot = replace(self._snapshot, state=CaptureState.UNSUPPORTED)
        else:
            self.attach(capability)

    # -- observable state --

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def state(self) -> CaptureState:
        return self._snapshot.state

    @property
    def intent(self) -> bool:
        return self._snapshot.intent

    @property
    def has_permission(self) -> bool:
        return self._snapshot.has_permission

    @property
    def is_supported(self) -> bool:
        return self._snapshot.state != CaptureState.UNSUPPORTED

    @property
    def is_listening(self) -> bool:
        return self._snapshot.intent and self._snapshot.state in (
            CaptureState.STARTING,
            CaptureState.LISTENING,
        )

    # -- capability handle --

    def attach(self, capability: RecognitionCapability) -> None:
        """Take ownership of ``capability``, releasing any previous handle first."""
        self._release()
        capability.configure(self.config)
        capability.attach(self.post)
        self._capability = capability
        self._open_cycles = 0
        snap = self._snapshot
        self._set(replace(snap, state=CaptureState.IDLE, intent=False), reason="attach")

    def reconfigure(self, config: RecognizerConfig) -> None:
        self.config = config
        self._snapshot = replace(self._snapshot, continuous=config.continuous)
        if self._capability is not None:
            self._capability.configure(config)

    def _release(self) -> None:
        prior = self._capability
        if prior is None:
            return
        self._capability = None
        prior.detach()
        try:
            prior.end()
        except Exception:
            logger.exception("capture_release_failed")

    # -- caller operations --

    async def request_permission(self) -> bool:
        granted = bool(await self.permission.request_access())
        snap = self._snapshot
        if granted:
            state = CaptureState.IDLE if snap.state == CaptureState.PERMISSION_DENIED else snap.state
            self._set(replace(snap, has_permission=True, state=state), reason="permission_granted")
        else:
            state = snap.state if snap.state == CaptureState.UNSUPPORTED else CaptureState.PERMISSION_DENIED
            self._set(
                replace(snap, has_permission=False, intent=False, state=state),
                reason="permission_denied",
            )
            self._notify(MicrophonePermissionError())
        return granted

    async def start(self) -> bool:
        if self._snapshot.state == CaptureState.UNSUPPORTED:
            raise CapabilityUnsupportedError()
        if not self._snapshot.has_permission:
            if not await self.request_permission():
                return False
        self._apply(*request_start(self._snapshot), reason="start")
        return True

    def stop(self) -> None:
        self._apply(*request_stop(self._snapshot), reason="stop")

    # -- inbound event channel --

    def post(self, event: PlatformEvent) -> None:
        loop, queue = self._loop, self._queue
        if loop is None or queue is None:
            self.handle(event)
            return
        loop.call_soon_threadsafe(queue.put_nowait, event)

    def handle(self, event: PlatformEvent) -> None:
        if isinstance(event, Ended):
            self._open_cycles = max(0, self._open_cycles - 1)
            if self._open_cycles > 0:
                # Ended of a cycle that a newer begin() already replaced.
                logger.debug("capture_stale_end", extra={"open_cycles": self._open_cycles})
                return
        self._apply(*transition(self._snapshot, event), reason=type(event).__name__.lower())

    async def run(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        try:
            while True:
                event = await self._queue.get()
                if event is None:
                    return
                self.handle(event)
        finally:
            self._loop = None
            self._queue = None

    def close(self) -> None:
        self._release()
        self._snapshot = replace(self._snapshot, intent=False)
        loop, queue = self._loop, self._queue
        if loop is not None and queue is not None:
            loop.call_soon_threadsafe(queue.put_nowait, None)

    # -- command execution --

    def _set(self, snap: SessionSnapshot, *, reason: str) -> None:
        before = self._snapshot
        self._snapshot = snap
        if before.state != snap.state:
            logger.info(
                "capture_state",
                extra={"from_state": before.state.value, "to_state": snap.state.value, "reason": reason},
            )

    def _apply(self, snap: SessionSnapshot, commands: List[Command], *, reason: str) -> None:
        self._set(snap, reason=reason)
        for cmd in commands:
            if isinstance(cmd, IssueBegin):
                self._begin()
            elif isinstance(cmd, IssueEnd):
                self._end()
            elif isinstance(cmd, EmitResult):
                if self.on_result is not None:
                    self.on_result(cmd.event)
            elif isinstance(cmd, NotifyError):
                self._notify(cmd.error)

    def _begin(self) -> None:
        if self._capability is None:
            return
        try:
            self._capability.begin()
        except Exception:
            logger.exception("capture_begin_failed")
            self.handle(Error("start-failed"))
        else:
            self._open_cycles += 1

    def _end(self) -> None:
        if self._capability is None:
            return
        try:
            self._capability.end()
        except Exception:
            logger.exception("capture_end_failed")

    def _notify(self, error: CaptureError) -> None:
        logger.warning(
            "capture_error",
            extra={"error_type": type(error).__name__, "detail": str(error)},
        )
        if self.on_error is not None:
            self.on_error(error)

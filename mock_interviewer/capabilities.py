"""Speech, camera and notification capabilities consumed by the interview session.

Hosts provide concrete implementations (browser bridge, desktop audio stack,
test fakes). Implementations raise ``CapabilityUnavailableError`` when a
device or API is missing or denied and ``CapabilityError`` when it fails
mid-use.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional
import structlog

logger = structlog.get_logger()

FragmentCallback = Callable[[str, bool], None]


@dataclass
class Recording:
    data: bytes
    duration_seconds: int
    extension: str = "webm"
    content_type: str = "video/webm"


@dataclass
class Notification:
    title: str
    description: str = ""
    variant: str = "default"  # default, destructive


Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    """Default notifier: write the toast to the log."""
    log = logger.warning if notification.variant == "destructive" else logger.info
    log("Notification", title=notification.title, description=notification.description)


class SpeechSynthesizer(ABC):
    @abstractmethod
    async def speak(self, text: str) -> None:
        """Read ``text`` aloud, returning once playback has finished."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop any utterance in progress."""


class SpeechRecognizer(ABC):
    @abstractmethod
    async def start(self, on_fragment: FragmentCallback) -> None:
        """Begin continuous recognition, reporting ``(text, is_final)`` fragments."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop listening; returns after the session's end event."""

    @abstractmethod
    def abort(self) -> None:
        """Tear down recognition immediately without waiting for results."""


class MediaRecorder(ABC):
    @abstractmethod
    async def start_camera(self) -> None:
        """Acquire camera and microphone."""

    @abstractmethod
    def stop_camera(self) -> None:
        """Release the camera and microphone stream."""

    @abstractmethod
    async def start_recording(self) -> None:
        pass

    @abstractmethod
    async def stop_recording(self) -> Optional[Recording]:
        """Stop and flush the recorder. ``None`` when nothing was recording."""


class TranscriptBuffer:
    """Live transcript: every final fragment plus the latest interim one."""

    def __init__(self):
        self._final: List[str] = []
        self._interim = ""

    def add(self, text: str, is_final: bool) -> None:
        if is_final:
            self._final.append(text.strip())
            self._interim = ""
        else:
            self._interim = text

    def clear(self) -> None:
        self._final = []
        self._interim = ""

    @property
    def text(self) -> str:
        parts = [p for p in self._final if p]
        if self._interim.strip():
            parts.append(self._interim.strip())
        return " ".join(parts)

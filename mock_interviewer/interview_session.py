"""Turn-taking controller for a live interview: speak, listen, save, repeat."""
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional
import structlog

from mock_interviewer.capabilities import (
    MediaRecorder, Notification, Notifier, SpeechRecognizer, SpeechSynthesizer,
    TranscriptBuffer, log_notification,
)
from mock_interviewer.config import settings
from mock_interviewer.errors import (
    CapabilityError, CapabilityUnavailableError, InterviewError, UploadError
)
from mock_interviewer.questions import Question, get_questions
from mock_interviewer.storage import RecordingStorage

logger = structlog.get_logger()

NO_RESPONSE_PLACEHOLDER = "No response captured"

# (question_number, question_text, difficulty, transcript, video_url, duration_seconds)
SaveResponse = Callable[[int, str, str, str, Optional[str], Optional[int]], Awaitable[Any]]
OnComplete = Callable[[], Awaitable[Any]]
OnStart = Callable[[], Awaitable[Any]]


class SessionPhase(str, Enum):
    READY = "ready"
    SPEAKING = "speaking"
    LISTENING = "listening"
    PROCESSING = "processing"
    COMPLETE = "complete"


class InvalidTransitionError(ValueError):
    pass


class InterviewSession:
    """Drives one interview through its questions.

    Only one question is ever in flight. The next question is not spoken until
    the current answer's save has returned.
    """

    def __init__(
        self,
        interview_id: str,
        user_id: str,
        category: str,
        synthesizer: SpeechSynthesizer,
        recognizer: SpeechRecognizer,
        recorder: MediaRecorder,
        save_response: SaveResponse,
        on_complete: Optional[OnComplete] = None,
        on_start: Optional[OnStart] = None,
        storage: Optional[RecordingStorage] = None,
        notify: Notifier = log_notification,
        questions: Optional[List[Question]] = None,
        question_delay: Optional[float] = None,
        transition_delay: Optional[float] = None,
        next_question_delay: Optional[float] = None,
        start_index: int = 0,
    ):
        self.interview_id = interview_id
        self.user_id = user_id
        self.category = category
        self.synthesizer = synthesizer
        self.recognizer = recognizer
        self.recorder = recorder
        self.save_response = save_response
        self.on_complete = on_complete
        self.on_start = on_start
        self.storage = storage or RecordingStorage()
        self.notify = notify
        self.questions = questions if questions is not None else get_questions(category)

        self.question_delay = settings.QUESTION_DELAY_SECONDS if question_delay is None else question_delay
        self.transition_delay = settings.TRANSITION_DELAY_SECONDS if transition_delay is None else transition_delay
        self.next_question_delay = (
            settings.NEXT_QUESTION_DELAY_SECONDS if next_question_delay is None else next_question_delay
        )

        self.phase = SessionPhase.READY
        self.current_index = start_index
        self.camera_ready = False
        self.is_recording = False
        self.is_listening = False
        self._transcript = TranscriptBuffer()
        self._started = False
        self._closed = False
        self._awaiting_completion = False
        self._log = logger.bind(interview_id=interview_id)

    @classmethod
    def for_interview(cls, interview, engine, **kwargs) -> "InterviewSession":
        """Build a session whose saves and completion go through an ``InterviewEngine``."""

        async def save(question_number, question_text, difficulty, transcript, video_url, duration):
            return engine.save_response(
                interview.id,
                question_number,
                question_text,
                difficulty,
                transcript,
                video_url=video_url,
                duration_seconds=duration,
            )

        async def begin():
            if engine.get_interview(interview.id).status == "pending":
                engine.start_interview(interview.id)

        async def complete():
            return engine.complete_interview(interview.id)

        # Resume at the engine's question pointer; 0 and 1 both mean the first question.
        kwargs.setdefault("start_index", max(interview.current_question or 0, 1) - 1)
        return cls(
            interview_id=interview.id,
            user_id=interview.user_id,
            category=interview.category,
            save_response=save,
            on_complete=complete,
            on_start=begin,
            **kwargs,
        )

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def question_number(self) -> int:
        return self.current_index + 1

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def progress(self) -> float:
        if not self.questions:
            return 100.0
        return min(self.current_index + 1, len(self.questions)) / len(self.questions) * 100

    @property
    def transcript(self) -> str:
        return self._transcript.text

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    async def start(self) -> None:
        """Acquire the camera, then ask the first question once the stream is live."""
        if self._started:
            return
        try:
            await self.recorder.start_camera()
        except CapabilityError as e:
            self._log.warning("Camera unavailable", error=e.message)
            self.notify(Notification(
                "Camera access denied",
                "Please allow camera and microphone access to continue",
                "destructive",
            ))
            raise CapabilityUnavailableError(e.message) from e
        self.camera_ready = True

        if self.on_start is not None:
            try:
                await self.on_start()
            except InterviewError as e:
                self._log.error("Starting interview failed", error=e.message)
                self.notify(Notification(e.title, e.message, "destructive"))
                raise

        self._started = True
        self._log.info(
            "Session started",
            category=self.category,
            total_questions=self.total_questions,
            question_number=self.question_number,
        )

        if self.current_question is None and self.questions:
            # Every question was already answered before this session began.
            self.phase = SessionPhase.PROCESSING
            self._awaiting_completion = True
            await self.finish()
            return

        await asyncio.sleep(self.question_delay)
        await self.ask_question()

    async def ask_question(self) -> None:
        """Read the current question aloud; the candidate may answer even if speech fails."""
        question = self.current_question
        if question is None or self._closed:
            return
        if self.phase != SessionPhase.READY:
            raise InvalidTransitionError(f"Cannot speak while {self.phase.value}")

        self.phase = SessionPhase.SPEAKING
        try:
            await self.synthesizer.speak(question.text)
        except CapabilityError as e:
            self._log.warning("Speech synthesis failed", question_number=self.question_number, error=e.message)
        finally:
            if self.phase == SessionPhase.SPEAKING:
                self.phase = SessionPhase.READY

    async def start_answer(self) -> None:
        if self._closed:
            raise InvalidTransitionError("Session is closed")
        if self.phase != SessionPhase.READY or self.current_question is None:
            raise InvalidTransitionError(f"Cannot start an answer while {self.phase.value}")

        self.phase = SessionPhase.LISTENING
        self._transcript.clear()

        try:
            await self.recorder.start_recording()
            self.is_recording = True
        except CapabilityError as e:
            self._log.warning("Recording failed to start", error=e.message)
            self.notify(Notification("Recording unavailable", e.message, "destructive"))
            self.phase = SessionPhase.READY
            return

        try:
            await self.recognizer.start(self._transcript.add)
            self.is_listening = True
        except CapabilityError as e:
            self._log.warning("Speech recognition unavailable", error=e.message)
            self.notify(Notification("Speech recognition unavailable", e.message, "destructive"))

    async def stop_answer(self) -> None:
        """Finish the answer, save it and move on to the next question or finish."""
        if self.phase != SessionPhase.LISTENING:
            raise InvalidTransitionError(f"Cannot stop an answer while {self.phase.value}")

        self.phase = SessionPhase.PROCESSING
        question = self.current_question

        if self.is_listening:
            try:
                await self.recognizer.stop()
            except CapabilityError as e:
                self._log.warning("Speech recognition ended with error", error=e.message)
            self.is_listening = False

        video_url, duration = await self._finish_recording()
        transcript = self._transcript.text or NO_RESPONSE_PLACEHOLDER

        try:
            await self.save_response(
                self.question_number,
                question.text,
                question.difficulty,
                transcript,
                video_url,
                duration,
            )
        except InterviewError as e:
            self._log.error("Saving response failed", question_number=self.question_number, error=e.message)
            self.notify(Notification(e.title, e.message, "destructive"))
            self.phase = SessionPhase.READY
            return

        self._log.info("Answer recorded", question_number=self.question_number, transcript_length=len(transcript))

        if self.current_index < len(self.questions) - 1:
            self.notify(Notification("Answer saved! Next question coming up..."))
            await asyncio.sleep(self.transition_delay)
            self.current_index += 1
            self._transcript.clear()
            self.phase = SessionPhase.READY
            await asyncio.sleep(self.next_question_delay)
            await self.ask_question()
        else:
            self._awaiting_completion = True
            await self.finish()

    async def finish(self) -> None:
        """Mark the interview complete after its last answer is saved.

        If completion fails the session stays in ``processing`` and ``finish``
        may be called again.
        """
        if not self._awaiting_completion:
            raise InvalidTransitionError(f"Cannot finish while {self.phase.value}")

        if self.on_complete is not None:
            try:
                await self.on_complete()
            except InterviewError as e:
                self._log.error("Completing interview failed", error=e.message)
                self.notify(Notification(e.title, e.message, "destructive"))
                return

        self._awaiting_completion = False
        self.phase = SessionPhase.COMPLETE
        self._log.info("Session complete")

    async def _finish_recording(self):
        """Stop the recorder and upload the clip; returns (video_url, duration)."""
        if not self.is_recording:
            return None, None
        self.is_recording = False

        try:
            recording = await self.recorder.stop_recording()
        except CapabilityError as e:
            self._log.warning("Recorder failed to stop", error=e.message)
            return None, None
        if recording is None:
            return None, None

        try:
            _, url = await asyncio.to_thread(
                self.storage.upload, self.user_id, recording.data, recording.extension
            )
        except UploadError as e:
            self.notify(Notification(e.title, e.message, "destructive"))
            return None, None
        return url, recording.duration_seconds

    def close(self) -> None:
        """Release the camera and cancel speech. In-flight saves keep running."""
        if self._closed:
            return
        self._closed = True
        self.synthesizer.cancel()
        if self.is_listening:
            self.recognizer.abort()
            self.is_listening = False
        self.recorder.stop_camera()
        self.camera_ready = False
        self._log.info("Session closed", phase=self.phase.value)

    async def __aenter__(self) -> "InterviewSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

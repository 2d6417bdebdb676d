import asyncio

import pytest

from mock_interviewer.errors import CapabilityUnavailableError, PersistenceError
from mock_interviewer.interview_engine import InterviewEngine
from mock_interviewer.interview_session import (
    NO_RESPONSE_PLACEHOLDER, InterviewSession, InvalidTransitionError, SessionPhase
)
from mock_interviewer.questions import get_questions

from fakes import FakeRecognizer, FakeRecorder, FakeSynthesizer, NotificationLog, StubReviewer


class SaveLog:
    def __init__(self, fail_times=0):
        self.fail_times = fail_times
        self.calls = []

    async def __call__(self, question_number, question_text, difficulty, transcript, video_url, duration):
        if self.fail_times:
            self.fail_times -= 1
            raise PersistenceError("database is locked")
        self.calls.append({
            "question_number": question_number,
            "question_text": question_text,
            "difficulty": difficulty,
            "transcript": transcript,
            "video_url": video_url,
            "duration": duration,
        })


def _session(storage, save, category="frontend", synthesizer=None, recognizer=None, recorder=None,
             notify=None, on_complete=None):
    return InterviewSession(
        interview_id="iv-1",
        user_id="user-1",
        category=category,
        synthesizer=synthesizer or FakeSynthesizer(),
        recognizer=recognizer or FakeRecognizer(),
        recorder=recorder or FakeRecorder(),
        save_response=save,
        on_complete=on_complete,
        storage=storage,
        notify=notify or NotificationLog(),
        question_delay=0,
        transition_delay=0,
        next_question_delay=0,
    )


def test_start_speaks_first_question_once(storage):
    synthesizer = FakeSynthesizer()
    recorder = FakeRecorder()
    session = _session(storage, SaveLog(), synthesizer=synthesizer, recorder=recorder)

    async def run():
        await session.start()
        await session.start()

    asyncio.run(run())

    assert recorder.camera_on
    assert synthesizer.spoken == [get_questions("frontend")[0].text]
    assert session.phase == SessionPhase.READY
    assert session.question_number == 1
    assert session.progress == 20.0


def test_camera_denied_blocks_start_and_notifies(storage):
    notify = NotificationLog()
    synthesizer = FakeSynthesizer()
    session = _session(storage, SaveLog(), synthesizer=synthesizer,
                       recorder=FakeRecorder(deny_camera=True), notify=notify)

    with pytest.raises(CapabilityUnavailableError):
        asyncio.run(session.start())

    assert notify.titles == ["Camera access denied"]
    assert synthesizer.spoken == []


def test_speech_failure_still_lets_candidate_answer(storage):
    save = SaveLog()
    recognizer = FakeRecognizer()
    session = _session(storage, save, synthesizer=FakeSynthesizer(fail=True), recognizer=recognizer)

    async def run():
        await session.start()
        assert session.phase == SessionPhase.READY
        await session.start_answer()
        recognizer.say("HTML is structure")
        await session.stop_answer()

    asyncio.run(run())
    assert save.calls[0]["transcript"] == "HTML is structure"


def test_silent_answer_saves_placeholder(storage):
    save = SaveLog()
    session = _session(storage, save)

    async def run():
        await session.start()
        await session.start_answer()
        await session.stop_answer()

    asyncio.run(run())
    assert save.calls[0]["transcript"] == NO_RESPONSE_PLACEHOLDER == "No response captured"


def test_unsupported_recognition_degrades_to_placeholder(storage):
    save = SaveLog()
    notify = NotificationLog()
    session = _session(storage, save, recognizer=FakeRecognizer(unsupported=True), notify=notify)

    async def run():
        await session.start()
        await session.start_answer()
        assert session.phase == SessionPhase.LISTENING
        await session.stop_answer()

    asyncio.run(run())
    assert "Speech recognition unavailable" in notify.titles
    assert save.calls[0]["transcript"] == NO_RESPONSE_PLACEHOLDER
    assert save.calls[0]["video_url"] is not None


def test_transcript_merges_final_and_interim_fragments(storage):
    save = SaveLog()
    recognizer = FakeRecognizer()
    session = _session(storage, save, recognizer=recognizer)

    async def run():
        await session.start()
        await session.start_answer()
        recognizer.say("The box model has", is_final=True)
        recognizer.say("content pad", is_final=False)
        assert session.transcript == "The box model has content pad"
        recognizer.say("content padding border margin", is_final=True)
        await session.stop_answer()

    asyncio.run(run())
    assert save.calls[0]["transcript"] == "The box model has content padding border margin"


def test_recording_is_uploaded_under_user_prefix(storage):
    save = SaveLog()
    session = _session(storage, save, recorder=FakeRecorder(duration=7))

    async def run():
        await session.start()
        await session.start_answer()
        await session.stop_answer()

    asyncio.run(run())
    call = save.calls[0]
    assert call["video_url"].startswith("http://testserver/recordings/user-1/")
    assert call["video_url"].endswith(".webm")
    assert call["duration"] == 7


def test_questions_are_strictly_sequential(storage):
    save = SaveLog()
    synthesizer = FakeSynthesizer()
    completed = []

    async def on_complete():
        completed.append(True)

    session = _session(storage, save, synthesizer=synthesizer, on_complete=on_complete)
    questions = get_questions("frontend")

    async def run():
        await session.start()
        for _ in questions:
            with pytest.raises(InvalidTransitionError):
                await session.stop_answer()
            await session.start_answer()
            with pytest.raises(InvalidTransitionError):
                await session.start_answer()
            await session.stop_answer()

    asyncio.run(run())

    assert [c["question_number"] for c in save.calls] == [1, 2, 3, 4, 5]
    assert [c["question_text"] for c in save.calls] == [q.text for q in questions]
    assert synthesizer.spoken == [q.text for q in questions]
    assert session.phase == SessionPhase.COMPLETE
    assert session.is_complete
    assert completed == [True]


def test_failed_save_keeps_the_same_question(storage):
    save = SaveLog(fail_times=1)
    notify = NotificationLog()
    synthesizer = FakeSynthesizer()
    session = _session(storage, save, synthesizer=synthesizer, notify=notify)

    async def run():
        await session.start()
        await session.start_answer()
        await session.stop_answer()
        assert session.phase == SessionPhase.READY
        assert session.question_number == 1
        await session.start_answer()
        await session.stop_answer()

    asyncio.run(run())

    assert "Error saving response" in notify.titles
    assert [c["question_number"] for c in save.calls] == [1]
    assert session.question_number == 2
    assert len(synthesizer.spoken) == 2


def test_saved_acknowledgement_between_questions(storage):
    notify = NotificationLog()
    session = _session(storage, SaveLog(), notify=notify)

    async def run():
        await session.start()
        await session.start_answer()
        await session.stop_answer()

    asyncio.run(run())
    assert notify.titles == ["Answer saved! Next question coming up..."]


def test_close_releases_media_and_cancels_speech(storage):
    synthesizer = FakeSynthesizer()
    recognizer = FakeRecognizer()
    recorder = FakeRecorder()

    async def run():
        async with _session(storage, SaveLog(), synthesizer=synthesizer,
                            recognizer=recognizer, recorder=recorder) as session:
            await session.start()
            await session.start_answer()
        return session

    session = asyncio.run(run())

    assert not recorder.camera_on
    assert synthesizer.cancelled == 1
    assert recognizer.aborted
    session.close()
    assert synthesizer.cancelled == 1


def test_start_answer_after_close_is_rejected(storage):
    recorder = FakeRecorder()
    session = _session(storage, SaveLog(), recorder=recorder)

    async def run():
        await session.start()
        session.close()
        with pytest.raises(InvalidTransitionError):
            await session.start_answer()

    asyncio.run(run())
    assert not recorder.recording
    assert recorder.clips == 0


class FlakyCompletion:
    def __init__(self, fail_times=1):
        self.fail_times = fail_times
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.fail_times:
            self.fail_times -= 1
            raise PersistenceError("database is locked")


def test_failed_completion_notifies_and_can_be_retried(storage):
    notify = NotificationLog()
    complete = FlakyCompletion(fail_times=1)
    session = _session(storage, SaveLog(), notify=notify, on_complete=complete)

    async def run():
        await session.start()
        for _ in get_questions("frontend"):
            await session.start_answer()
            await session.stop_answer()
        assert session.phase == SessionPhase.PROCESSING
        assert not session.is_complete
        with pytest.raises(InvalidTransitionError):
            await session.start_answer()
        await session.finish()

    asyncio.run(run())

    assert notify.titles[-1] == "Error saving response"
    assert complete.calls == 2
    assert session.is_complete


def test_finish_before_last_answer_is_rejected(storage):
    session = _session(storage, SaveLog())

    async def run():
        await session.start()
        with pytest.raises(InvalidTransitionError):
            await session.finish()

    asyncio.run(run())
    assert session.phase == SessionPhase.READY


def _engine_session(interview, engine, storage, synthesizer=None, recognizer=None, notify=None):
    return InterviewSession.for_interview(
        interview,
        engine,
        synthesizer=synthesizer or FakeSynthesizer(),
        recognizer=recognizer or FakeRecognizer(),
        recorder=FakeRecorder(),
        storage=storage,
        notify=notify or NotificationLog(),
        question_delay=0,
        transition_delay=0,
        next_question_delay=0,
    )


def test_session_starts_a_pending_interview(db_session, storage):
    engine = InterviewEngine(db_session, reviewer=StubReviewer())
    interview = engine.create_interview("user-1", "Grace", "react")
    session = _engine_session(interview, engine, storage)

    asyncio.run(session.start())

    stored = engine.get_interview(interview.id)
    assert stored.status == "in_progress"
    assert stored.current_question == 1
    assert stored.started_at is not None
    assert session.question_number == 1


def test_session_resumes_at_the_saved_question(db_session, storage):
    engine = InterviewEngine(db_session, reviewer=StubReviewer())
    questions = get_questions("frontend")
    interview = engine.create_interview("user-1", "Grace", "frontend")
    engine.start_interview(interview.id)
    engine.save_response(interview.id, 1, questions[0].text, questions[0].difficulty, "HTML is markup")

    synthesizer = FakeSynthesizer()
    session = _engine_session(engine.get_interview(interview.id), engine, storage, synthesizer=synthesizer)

    async def run():
        await session.start()
        assert session.question_number == 2
        for _ in questions[1:]:
            await session.start_answer()
            await session.stop_answer()

    asyncio.run(run())

    responses = engine.get_responses(interview.id)
    assert synthesizer.spoken == [q.text for q in questions[1:]]
    assert [r.question_number for r in responses] == [1, 2, 3, 4, 5]
    assert [r.question_text for r in responses] == [q.text for q in questions]
    assert engine.get_interview(interview.id).status == "completed"
    assert session.is_complete


def test_session_on_fully_answered_interview_only_completes(db_session, storage):
    engine = InterviewEngine(db_session, reviewer=StubReviewer())
    questions = get_questions("frontend")
    interview = engine.create_interview("user-1", "Grace", "frontend")
    engine.start_interview(interview.id)
    for number, question in enumerate(questions, start=1):
        engine.save_response(interview.id, number, question.text, question.difficulty, f"answer {number}")

    synthesizer = FakeSynthesizer()
    session = _engine_session(engine.get_interview(interview.id), engine, storage, synthesizer=synthesizer)

    asyncio.run(session.start())

    assert synthesizer.spoken == []
    assert session.is_complete
    assert engine.get_interview(interview.id).status == "completed"


def test_python_interview_for_ada_end_to_end(db_session, storage):
    reviewer = StubReviewer("## Overall Assessment\nStrong fundamentals.\n\n## Score: 78/100\n")
    engine = InterviewEngine(db_session, reviewer=reviewer)
    recognizer = FakeRecognizer()
    answers = [
        "Readable syntax and a huge ecosystem",
        "Lists are mutable and tuples are not",
        "The GIL lets one thread run bytecode at a time",
        "Generators yield values lazily",
        "asyncio, threads for IO, processes for CPU",
    ]

    interview = engine.create_interview("user-ada", "Ada", "python")
    statuses = [interview.status]

    async def run():
        session = InterviewSession.for_interview(
            interview,
            engine,
            synthesizer=FakeSynthesizer(),
            recognizer=recognizer,
            recorder=FakeRecorder(),
            storage=storage,
            notify=NotificationLog(),
            question_delay=0,
            transition_delay=0,
            next_question_delay=0,
        )
        async with session:
            await session.start()
            statuses.append(engine.get_interview(interview.id).status)
            for answer in answers:
                await session.start_answer()
                recognizer.say(answer)
                await session.stop_answer()
        statuses.append(engine.get_interview(interview.id).status)

        await engine.analyze_interview(interview.id)
        statuses.append(engine.get_interview(interview.id).status)

    asyncio.run(run())

    stored = engine.get_interview(interview.id)
    responses = engine.get_responses(interview.id)

    assert statuses == ["pending", "in_progress", "completed", "analyzed"]
    assert stored.current_question == 6
    assert [r.question_number for r in responses] == [1, 2, 3, 4, 5]
    assert [r.audio_transcript for r in responses] == answers
    assert all(r.video_url.startswith("http://testserver/recordings/user-ada/") for r in responses)
    assert isinstance(stored.overall_score, int)
    assert 0 <= stored.overall_score <= 100
    assert stored.overall_score == 78
    assert len(reviewer.calls) == 1

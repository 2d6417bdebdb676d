"""Interview lifecycle and response persistence."""
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import structlog

from mock_interviewer.config import settings
from mock_interviewer.database.models import Interview, Response, INTERVIEW_STATUSES
from mock_interviewer.errors import (
    InterviewNotFoundError, InvalidStateError, PersistenceError, ReviewError
)
from mock_interviewer.llm_service import LLMService, ReviewResult, llm_service
from mock_interviewer.questions import is_valid_category

logger = structlog.get_logger()


class InterviewEngine:
    def __init__(self, db: Session, reviewer: Optional[LLMService] = None):
        self.db = db
        self.reviewer = reviewer or llm_service

    def create_interview(
        self,
        user_id: str,
        candidate_name: str,
        category: str,
        total_questions: Optional[int] = None,
    ) -> Interview:
        """Create a pending interview for a candidate in one category."""
        if not candidate_name or not candidate_name.strip():
            raise ValueError("Candidate name is required")
        if not is_valid_category(category):
            raise ValueError(f"Unknown interview category: {category}")

        interview = Interview(
            user_id=user_id,
            candidate_name=candidate_name.strip(),
            category=category,
            status="pending",
            total_questions=total_questions or settings.DEFAULT_TOTAL_QUESTIONS,
            current_question=0,
        )
        self._commit(interview)
        logger.info("Interview created", interview_id=interview.id, category=category)
        return interview

    def start_interview(self, interview_id: str) -> Interview:
        interview = self.get_interview(interview_id)
        self._require_status(interview, "pending")
        self._advance_status(interview, "in_progress")
        interview.started_at = datetime.utcnow()
        interview.current_question = 1
        self._commit(interview)
        logger.info("Interview started", interview_id=interview_id)
        return interview

    def save_response(
        self,
        interview_id: str,
        question_number: int,
        question_text: str,
        difficulty: str,
        transcript: Optional[str],
        video_url: Optional[str] = None,
        audio_url: Optional[str] = None,
        duration_seconds: Optional[int] = None,
    ) -> Response:
        """Store one answer and move the interview's question pointer past it.

        Question numbers must arrive as 1, 2, 3, ... with no gaps. On a storage
        failure nothing is committed, so the same number is offered again.
        """
        interview = self.get_interview(interview_id)
        self._require_status(interview, "in_progress")

        if question_number != interview.current_question:
            raise InvalidStateError(
                f"Expected answer for question {interview.current_question}, got {question_number}"
            )
        if question_number > interview.total_questions:
            raise InvalidStateError(
                f"Interview has only {interview.total_questions} questions"
            )

        response = Response(
            interview_id=interview.id,
            question_number=question_number,
            question_text=question_text,
            difficulty=difficulty,
            audio_transcript=transcript,
            video_url=video_url,
            audio_url=audio_url,
            response_duration_seconds=duration_seconds,
        )
        interview.current_question = question_number + 1
        self._commit(response)

        logger.info(
            "Response saved",
            interview_id=interview_id,
            question_number=question_number,
            has_video=video_url is not None,
        )
        return response

    def complete_interview(self, interview_id: str) -> Interview:
        interview = self.get_interview(interview_id)
        self._require_status(interview, "in_progress")
        self._advance_status(interview, "completed")
        interview.completed_at = datetime.utcnow()
        self._commit(interview)
        logger.info("Interview completed", interview_id=interview_id)
        return interview

    async def analyze_interview(self, interview_id: str) -> ReviewResult:
        """Send every answer to the reviewer once and store the review and score."""
        interview = self.get_interview(interview_id)
        self._require_status(interview, "completed", "analyzed")

        responses = self.get_responses(interview_id)
        if not responses:
            raise InvalidStateError("Interview has no responses to analyze")

        result = await self.reviewer.analyze(
            interview.id,
            interview.category,
            interview.candidate_name,
            [
                {
                    "question": r.question_text,
                    "answer": r.audio_transcript,
                    "difficulty": r.difficulty,
                }
                for r in responses
            ],
        )

        interview.ai_review = result.review
        interview.overall_score = result.score
        self._advance_status(interview, "analyzed")
        self._commit(interview)
        logger.info("Interview analyzed", interview_id=interview_id, overall_score=result.score)
        return result

    async def load_results(
        self, interview_id: str
    ) -> Tuple[Interview, List[Response], bool, Optional[str]]:
        """Load an interview with its responses, analyzing it if no review exists yet.

        Returns (interview, responses, analyzed_now, analysis_error).
        """
        interview = self.get_interview(interview_id)
        responses = self.get_responses(interview_id)

        if (
            interview.ai_review is not None
            or not responses
            or interview.status not in ("completed", "analyzed")
        ):
            return interview, responses, False, None

        try:
            await self.analyze_interview(interview_id)
        except ReviewError as e:
            logger.warning("Automatic analysis failed", interview_id=interview_id, error=e.message)
            return interview, responses, False, e.message

        return interview, responses, True, None

    def get_interview(self, interview_id: str) -> Interview:
        interview = self.db.query(Interview).filter(Interview.id == interview_id).first()
        if not interview:
            raise InterviewNotFoundError(interview_id)
        return interview

    def get_responses(self, interview_id: str) -> List[Response]:
        return (
            self.db.query(Response)
            .filter(Response.interview_id == interview_id)
            .order_by(Response.question_number.asc())
            .all()
        )

    def get_interview_history(self, user_id: str) -> List[Interview]:
        return (
            self.db.query(Interview)
            .filter(Interview.user_id == user_id)
            .order_by(Interview.created_at.desc())
            .all()
        )

    def get_statistics(self, user_id: str) -> dict:
        """Dashboard totals for one user."""
        interviews = self.get_interview_history(user_id)
        scores = [i.overall_score for i in interviews if i.overall_score is not None]
        return {
            "total_interviews": len(interviews),
            "analyzed_interviews": len([i for i in interviews if i.status == "analyzed"]),
            "average_score": round(sum(scores) / len(scores)) if scores else 0,
        }

    def _require_status(self, interview: Interview, *allowed: str) -> None:
        if interview.status not in allowed:
            raise InvalidStateError(
                f"Interview is {interview.status}; expected {' or '.join(allowed)}"
            )

    def _advance_status(self, interview: Interview, new_status: str) -> None:
        current = INTERVIEW_STATUSES.index(interview.status)
        if INTERVIEW_STATUSES.index(new_status) < current:
            raise InvalidStateError(
                f"Cannot move interview from {interview.status} back to {new_status}"
            )
        interview.status = new_status

    def _commit(self, instance) -> None:
        try:
            self.db.add(instance)
            self.db.commit()
            self.db.refresh(instance)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Database write failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError(f"Could not save to the database ({type(e).__name__})") from e

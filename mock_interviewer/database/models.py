"""Database models for the Mock Interviewer."""
import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from mock_interviewer.database.db import Base

# Lifecycle order; an interview's status may only move to the right.
INTERVIEW_STATUSES = ["pending", "in_progress", "completed", "analyzed"]

DIFFICULTIES = ["beginner", "intermediate", "advanced"]


def _new_id() -> str:
    return str(uuid.uuid4())


class Interview(Base):
    __tablename__ = "interviews"

    id = Column(String, primary_key=True, default=_new_id)
    user_id = Column(String, index=True, nullable=False)
    candidate_name = Column(String, nullable=False)
    category = Column(String, nullable=False)  # java, python, frontend, php, react, nodejs
    status = Column(String, default="pending", nullable=False)
    total_questions = Column(Integer, default=5, nullable=False)
    current_question = Column(Integer, default=0, nullable=False)
    overall_score = Column(Integer, nullable=True)
    ai_review = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    responses = relationship(
        "Response",
        back_populates="interview",
        order_by="Response.question_number",
        cascade="all, delete-orphan",
    )


class Response(Base):
    __tablename__ = "interview_responses"
    __table_args__ = (
        UniqueConstraint("interview_id", "question_number", name="uq_response_question_number"),
    )

    id = Column(String, primary_key=True, default=_new_id)
    interview_id = Column(String, ForeignKey("interviews.id"), index=True, nullable=False)
    question_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    difficulty = Column(String, nullable=False)  # beginner, intermediate, advanced
    audio_transcript = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    audio_url = Column(String, nullable=True)
    response_duration_seconds = Column(Integer, nullable=True)
    # Reserved for per-answer scoring; nothing writes these yet.
    ai_score = Column(Integer, nullable=True)
    ai_feedback = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    interview = relationship("Interview", back_populates="responses")

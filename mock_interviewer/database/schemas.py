"""Pydantic schemas for API requests and responses."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime


class InterviewCreate(BaseModel):
    user_id: str = Field(min_length=1)
    candidate_name: str = Field(min_length=1)
    category: str
    total_questions: Optional[int] = Field(default=None, ge=1, le=10)


class InterviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    candidate_name: str
    category: str
    status: str
    total_questions: int
    current_question: int
    overall_score: Optional[int] = None
    ai_review: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ResponseCreate(BaseModel):
    question_number: int = Field(ge=1)
    question_text: str
    difficulty: str
    audio_transcript: Optional[str] = None
    video_url: Optional[str] = None
    audio_url: Optional[str] = None
    response_duration_seconds: Optional[int] = Field(default=None, ge=0)


class ResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    interview_id: str
    question_number: int
    question_text: str
    difficulty: str
    audio_transcript: Optional[str] = None
    video_url: Optional[str] = None
    audio_url: Optional[str] = None
    response_duration_seconds: Optional[int] = None
    ai_score: Optional[int] = None
    ai_feedback: Optional[str] = None
    created_at: Optional[datetime] = None


class QuestionRead(BaseModel):
    question_number: int
    text: str
    difficulty: str


class CategoryRead(BaseModel):
    id: str
    label: str
    question_count: int


class ReviewAnswer(BaseModel):
    question: str
    answer: Optional[str] = None
    difficulty: str


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    interview_id: str = Field(alias="interviewId")
    category: str
    candidate_name: str = Field(alias="candidateName")
    responses: List[ReviewAnswer]


class ReviewResponse(BaseModel):
    review: str
    score: int


class InterviewResults(BaseModel):
    interview: InterviewRead
    responses: List[ResponseRead]
    analyzed_now: bool = False
    analysis_error: Optional[str] = None


class InterviewStats(BaseModel):
    total_interviews: int
    analyzed_interviews: int
    average_score: int


class RecordingUploaded(BaseModel):
    key: str
    url: str

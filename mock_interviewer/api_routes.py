"""API routes for the Mock Interviewer."""
from typing import List
from fastapi import APIRouter, Depends, File, Form, HTTPException, Response as HTTPResponse, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
import structlog

from mock_interviewer.database.db import get_db
from mock_interviewer.database.schemas import (
    AnalyzeRequest, CategoryRead, InterviewCreate, InterviewRead, InterviewResults,
    InterviewStats, QuestionRead, RecordingUploaded, ResponseCreate, ResponseRead,
    ReviewResponse,
)
from mock_interviewer.errors import (
    InterviewError, InterviewNotFoundError, InvalidStateError, PersistenceError,
    ReviewError, UploadError,
)
from mock_interviewer.interview_engine import InterviewEngine
from mock_interviewer.llm_service import LLMService, llm_service
from mock_interviewer.questions import (
    CATEGORIES, get_category_label, get_questions, is_valid_category
)
from mock_interviewer.storage import RecordingStorage

logger = structlog.get_logger()
router = APIRouter()
review_router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def get_reviewer() -> LLMService:
    return llm_service


def get_storage() -> RecordingStorage:
    return RecordingStorage()


def get_engine(
    db: Session = Depends(get_db),
    reviewer: LLMService = Depends(get_reviewer),
) -> InterviewEngine:
    return InterviewEngine(db, reviewer=reviewer)


def _http_error(e: InterviewError) -> HTTPException:
    """Translate a domain error into the message shown to the candidate."""
    if isinstance(e, InterviewNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, ReviewError):
        return HTTPException(status_code=e.status_code, detail=e.message)
    if isinstance(e, (PersistenceError, UploadError)):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


# Review endpoint
@review_router.options("/analyze-interview")
async def analyze_interview_preflight():
    return HTTPResponse(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)


@review_router.post("/analyze-interview", response_model=ReviewResponse)
async def analyze_interview(
    request: AnalyzeRequest,
    reviewer: LLMService = Depends(get_reviewer),
):
    """Review a finished interview's answers and return the markdown review and score."""
    try:
        result = await reviewer.analyze(
            request.interview_id,
            request.category,
            request.candidate_name,
            [r.model_dump() for r in request.responses],
        )
        return ReviewResponse(review=result.review, score=result.score)
    except ReviewError as e:
        logger.error("analyze-interview error", interview_id=request.interview_id, error=e.message)
        return JSONResponse(status_code=e.status_code, content={"error": e.message}, headers=CORS_HEADERS)


# Category endpoints
@router.get("/categories", response_model=List[CategoryRead])
async def list_categories():
    return [
        CategoryRead(id=c, label=get_category_label(c), question_count=len(get_questions(c)))
        for c in CATEGORIES
    ]


@router.get("/categories/{category}/questions", response_model=List[QuestionRead])
async def list_questions(category: str):
    """Questions for a category; unknown categories get the frontend set."""
    return [
        QuestionRead(question_number=i, text=q.text, difficulty=q.difficulty)
        for i, q in enumerate(get_questions(category), start=1)
    ]


# Interview endpoints
@router.post("/interviews", response_model=InterviewRead, status_code=status.HTTP_201_CREATED)
async def create_interview(
    request: InterviewCreate,
    engine: InterviewEngine = Depends(get_engine),
):
    """Create a pending interview."""
    if not is_valid_category(request.category):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown interview category: {request.category}"
        )
    try:
        return engine.create_interview(
            request.user_id,
            request.candidate_name,
            request.category,
            request.total_questions,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except InterviewError as e:
        logger.error("Failed to create interview", error=e.message)
        raise _http_error(e)


@router.get("/interviews", response_model=List[InterviewRead])
async def get_interview_history(
    user_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    """All interviews for a user, newest first."""
    return engine.get_interview_history(user_id)


@router.get("/interviews/stats", response_model=InterviewStats)
async def get_interview_stats(
    user_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    return InterviewStats(**engine.get_statistics(user_id))


@router.get("/interviews/{interview_id}", response_model=InterviewRead)
async def get_interview(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    try:
        return engine.get_interview(interview_id)
    except InterviewError as e:
        raise _http_error(e)


@router.post("/interviews/{interview_id}/start", response_model=InterviewRead)
async def start_interview(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    """Mark the interview in progress and point it at question 1."""
    try:
        return engine.start_interview(interview_id)
    except InterviewError as e:
        logger.warning("Failed to start interview", interview_id=interview_id, error=e.message)
        raise _http_error(e)


@router.post(
    "/interviews/{interview_id}/responses",
    response_model=ResponseRead,
    status_code=status.HTTP_201_CREATED,
)
async def save_response(
    interview_id: str,
    request: ResponseCreate,
    engine: InterviewEngine = Depends(get_engine),
):
    """Store one answer and advance the question pointer."""
    try:
        return engine.save_response(
            interview_id,
            request.question_number,
            request.question_text,
            request.difficulty,
            request.audio_transcript,
            video_url=request.video_url,
            audio_url=request.audio_url,
            duration_seconds=request.response_duration_seconds,
        )
    except InterviewError as e:
        logger.warning(
            "Failed to save response",
            interview_id=interview_id,
            question_number=request.question_number,
            error=e.message,
        )
        raise _http_error(e)


@router.get("/interviews/{interview_id}/responses", response_model=List[ResponseRead])
async def get_interview_responses(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    try:
        engine.get_interview(interview_id)
        return engine.get_responses(interview_id)
    except InterviewError as e:
        raise _http_error(e)


@router.post("/interviews/{interview_id}/complete", response_model=InterviewRead)
async def complete_interview(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    try:
        return engine.complete_interview(interview_id)
    except InterviewError as e:
        logger.warning("Failed to complete interview", interview_id=interview_id, error=e.message)
        raise _http_error(e)


@router.post("/interviews/{interview_id}/analyze", response_model=ReviewResponse)
async def analyze_stored_interview(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    """Run the AI review for a completed interview and store the result."""
    try:
        result = await engine.analyze_interview(interview_id)
        return ReviewResponse(review=result.review, score=result.score)
    except InterviewError as e:
        logger.error("Failed to analyze interview", interview_id=interview_id, error=e.message)
        raise _http_error(e)


@router.get("/interviews/{interview_id}/results", response_model=InterviewResults)
async def get_interview_results(
    interview_id: str,
    engine: InterviewEngine = Depends(get_engine),
):
    """Interview plus answers; analyzes automatically the first time results are opened."""
    try:
        interview, responses, analyzed_now, analysis_error = await engine.load_results(interview_id)
    except InterviewError as e:
        raise _http_error(e)

    return InterviewResults(
        interview=InterviewRead.model_validate(interview),
        responses=[ResponseRead.model_validate(r) for r in responses],
        analyzed_now=analyzed_now,
        analysis_error=analysis_error,
    )


# Recording upload
@router.post("/recordings", response_model=RecordingUploaded, status_code=status.HTTP_201_CREATED)
async def upload_recording(
    user_id: str = Form(...),
    file: UploadFile = File(...),
    storage: RecordingStorage = Depends(get_storage),
):
    """Store an answer recording and return its public URL."""
    extension = (file.filename or "").rsplit(".", 1)[-1] if "." in (file.filename or "") else "webm"
    data = await file.read()
    try:
        key, url = storage.upload(user_id, data, extension)
    except UploadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return RecordingUploaded(key=key, url=url)


# Health check endpoint
@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Mock Interviewer API"}

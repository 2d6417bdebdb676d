"""Review requester: batches interview answers into one LLM call and extracts a score."""
import httpx
import re
from typing import Dict, List, Optional
from pydantic import BaseModel
import structlog
from mock_interviewer.config import settings
from mock_interviewer.errors import (
    MissingCredentialError, PaymentRequiredError, RateLimitedError, UpstreamError
)

logger = structlog.get_logger()

DEFAULT_SCORE = 50
NO_ANSWER_TEXT = "No response provided"
UNAVAILABLE_REVIEW = "Unable to generate review"

# The system prompt asks for "## Score: N/100"; this is the only contract with the model.
SCORE_PATTERN = re.compile(r"Score:\s*(-?\d+)", re.IGNORECASE)


class ReviewResult(BaseModel):
    review: str
    score: int


def extract_score(review: str) -> int:
    """Pull "Score: N" out of free text, clamped to 0..100, or 50 when absent."""
    match = SCORE_PATTERN.search(review or "")
    if not match:
        return DEFAULT_SCORE
    return max(0, min(100, int(match.group(1))))


def format_responses(responses: List[Dict]) -> str:
    return "\n\n".join(
        f"Question {i} ({r.get('difficulty')}): {r.get('question')}\n"
        f"Answer: {r.get('answer') or NO_ANSWER_TEXT}"
        for i, r in enumerate(responses, start=1)
    )


def build_system_prompt(category: str, candidate_name: str) -> str:
    return f"""You are an expert technical interviewer and hiring manager. You are analyzing a {category} interview for a candidate named {candidate_name}.

Your task is to:
1. Evaluate each answer based on technical accuracy, clarity, and depth
2. Provide an overall score from 0-100
3. Give constructive feedback with specific areas of strength and improvement
4. Provide hiring recommendation

Format your response in markdown with the following sections:
## Overall Assessment
[Brief summary of the candidate's performance]

## Score: [NUMBER]/100

## Strengths
- [Strength 1]
- [Strength 2]
...

## Areas for Improvement
- [Area 1]
- [Area 2]
...

## Detailed Feedback
[Specific feedback on key answers]

## Hiring Recommendation
[Strong Hire / Hire / Maybe / No Hire] with brief justification"""


class LLMService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.AI_GATEWAY_API_KEY
        self.api_url = api_url or settings.AI_GATEWAY_URL
        self.model = model or settings.AI_MODEL
        self.timeout = timeout or settings.AI_TIMEOUT
        self.transport = transport

    async def _chat_completion(self, messages: List[Dict]) -> Dict:
        """Single gateway call. Nothing here is retried; the caller re-triggers."""
        if not self.api_key:
            logger.error("AI gateway credential missing")
            raise MissingCredentialError()

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.model, "messages": messages}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                logger.info("Making LLM request", model=self.model, message_count=len(messages))
                response = await client.post(self.api_url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                logger.error("LLM request failed", error=str(e), error_type=type(e).__name__)
                raise UpstreamError() from e

        if response.status_code == 429:
            logger.warning("AI gateway rate limited", status_code=response.status_code)
            raise RateLimitedError()
        if response.status_code == 402:
            logger.warning("AI gateway payment required", status_code=response.status_code)
            raise PaymentRequiredError()
        if response.is_error:
            logger.error("AI gateway error", status_code=response.status_code, response=response.text)
            raise UpstreamError(upstream_status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            logger.error("AI gateway returned invalid JSON", response_preview=response.text[:200])
            raise UpstreamError() from e

    @staticmethod
    def _extract_content(data: Dict) -> str:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            return UNAVAILABLE_REVIEW
        message = choices[0].get("message") or {}
        return message.get("content") or UNAVAILABLE_REVIEW

    async def analyze(
        self,
        interview_id: str,
        category: str,
        candidate_name: str,
        responses: List[Dict],
    ) -> ReviewResult:
        """Ask the model for a markdown review of the whole interview."""
        messages = [
            {"role": "system", "content": build_system_prompt(category, candidate_name)},
            {
                "role": "user",
                "content": f"Please analyze this {category} interview:\n\n{format_responses(responses)}",
            },
        ]

        data = await self._chat_completion(messages)
        review = self._extract_content(data)
        score = extract_score(review)

        logger.info(
            "Interview review received",
            interview_id=interview_id,
            score=score,
            review_length=len(review),
        )
        return ReviewResult(review=review, score=score)

# Global service instance
llm_service = LLMService()

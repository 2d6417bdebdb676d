"""Error types raised by the interview engine, session controller and review requester."""


class InterviewError(Exception):
    """Base class for every error surfaced to the candidate."""

    title = "Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InterviewNotFoundError(InterviewError):
    def __init__(self, interview_id: str):
        super().__init__(f"Interview {interview_id} not found")
        self.interview_id = interview_id


class InvalidStateError(InterviewError, ValueError):
    """An operation was attempted in the wrong lifecycle status or out of order."""


class PersistenceError(InterviewError):
    title = "Error saving response"


class CapabilityError(InterviewError):
    """A speech or media capability failed while in use."""


class CapabilityUnavailableError(CapabilityError):
    """Camera, microphone or a speech API is missing or denied."""


class UploadError(InterviewError):
    title = "Upload failed"


class ReviewError(InterviewError):
    title = "Analysis failed"
    status_code = 500


class MissingCredentialError(ReviewError):
    def __init__(self, variable: str = "AI_GATEWAY_API_KEY"):
        super().__init__(f"{variable} is not configured")


class RateLimitedError(ReviewError):
    status_code = 429

    def __init__(self, message: str = "Rate limits exceeded, please try again later."):
        super().__init__(message)


class PaymentRequiredError(ReviewError):
    status_code = 402

    def __init__(self, message: str = "Payment required, please add funds."):
        super().__init__(message)


class UpstreamError(ReviewError):
    def __init__(self, message: str = "AI gateway error", upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status

"""Simple configuration for the Mock Interviewer."""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mock_interviewer.db")

    # AI gateway (OpenAI-compatible chat completions)
    AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
    AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY")
    AI_MODEL = os.getenv("AI_MODEL", "google/gemini-3-flash-preview")
    AI_TIMEOUT = float(os.getenv("AI_TIMEOUT", 120))

    # Interview Settings
    DEFAULT_TOTAL_QUESTIONS = 5
    QUESTION_DELAY_SECONDS = float(os.getenv("QUESTION_DELAY_SECONDS", 1.0))
    TRANSITION_DELAY_SECONDS = float(os.getenv("TRANSITION_DELAY_SECONDS", 1.0))
    NEXT_QUESTION_DELAY_SECONDS = float(os.getenv("NEXT_QUESTION_DELAY_SECONDS", 0.5))
    SPEECH_RATE = 0.9
    SPEECH_LANGUAGE = os.getenv("SPEECH_LANGUAGE", "en-US")

    # Recordings
    PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    RECORDINGS_DIR = os.getenv("RECORDINGS_DIR", os.path.join(PROJECT_ROOT, "data", "recordings"))
    RECORDINGS_BASE_URL = os.getenv("RECORDINGS_BASE_URL", "http://localhost:8000/recordings")
    RECORDING_EXTENSION = "webm"

    # App Settings
    DEBUG = _env_bool("DEBUG", True)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 8000))

settings = Settings()

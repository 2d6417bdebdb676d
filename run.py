"""Simple script to run the Mock Interviewer API."""
from dotenv import load_dotenv
import uvicorn
from mock_interviewer.config import settings

load_dotenv()

if __name__ == "__main__":
    uvicorn.run(
        "mock_interviewer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )

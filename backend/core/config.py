# backend/core/config.py
import os
from typing import List, Literal
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - HOST / PORT where uvicorn listens
        - CORS_ORIGINS comma separated list of allowed origins
        - HISTORY_LIMIT how many recent messages are replayed to a joiner
        - ASSISTANT_BACKEND the responder to use: "canned" or "http"
    """

    # Load environment variables from the .env file
    load_dotenv()

    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "5000"))
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:5000").split(",")
        if origin.strip()
    ]

    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "30"))
    ROOM_ID_MAX_LENGTH: int = int(os.getenv("ROOM_ID_MAX_LENGTH", "64"))

    ASSISTANT_NAME: str = os.getenv("ASSISTANT_NAME", "CodeGuard AI")
    ASSISTANT_BACKEND: Literal["canned", "http"] = os.getenv("ASSISTANT_BACKEND", "canned")

    # Canned responder latency, in seconds
    ASSISTANT_MIN_DELAY: float = float(os.getenv("ASSISTANT_MIN_DELAY", "1.2"))
    ASSISTANT_MAX_DELAY: float = float(os.getenv("ASSISTANT_MAX_DELAY", "2.0"))

    # OpenAI-compatible chat completions endpoint for the http responder
    ASSISTANT_API_URL: str = os.getenv("ASSISTANT_API_URL", "https://api.openai.com/v1")
    ASSISTANT_API_KEY: str = os.getenv("ASSISTANT_API_KEY", "")
    ASSISTANT_MODEL: str = os.getenv("ASSISTANT_MODEL", "gpt-4o-mini")
    ASSISTANT_TIMEOUT: float = float(os.getenv("ASSISTANT_TIMEOUT", "30"))

settings = Settings()

import os
from typing import TypedDict

from dotenv import load_dotenv


DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000"


class AppConfig(TypedDict):
    """Configuration for the application"""

    API_BASE_URL: str
    SPREADSHEET_ID: str
    GOOGLE_CREDENTIALS: str
    SHEET_NAME: str
    UPSTREAM_TIMEOUT: float


def load_config() -> AppConfig:
    """Load configuration from environment variables"""
    load_dotenv()

    required_vars = {
        "API_BASE_URL": os.getenv("API_BASE_URL"),
        "SPREADSHEET_ID": os.getenv("SPREADSHEET_ID"),
        "GOOGLE_CREDENTIALS": os.getenv("GOOGLE_CREDENTIALS"),
    }

    missing = [k for k, v in required_vars.items() if not v]
    if missing:
        raise OSError(f"Missing required environment variables: {', '.join(missing)}")

    return {
        **required_vars,
        "SHEET_NAME": os.getenv("SHEET_NAME") or "Detailed Report",
        "UPSTREAM_TIMEOUT": float(os.getenv("UPSTREAM_TIMEOUT") or 30),
    }


def get_allowed_origins() -> list[str]:
    """Browser origins allowed by CORS, from a comma separated ALLOWED_ORIGINS"""
    load_dotenv()
    origins = os.getenv("ALLOWED_ORIGINS") or DEFAULT_ALLOWED_ORIGINS
    return [origin.strip() for origin in origins.split(",") if origin.strip()]

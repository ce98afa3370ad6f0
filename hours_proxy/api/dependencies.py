"""Process-wide collaborators and request credentials."""

from functools import lru_cache
from typing import Optional

from fastapi import Header

from hours_proxy.config import AppConfig, load_config
from hours_proxy.errors import Unauthorized
from hours_proxy.sheets.client import GoogleSheetsClient
from hours_proxy.sheets.publisher import SheetPublisher
from hours_proxy.upstream.client import UpstreamClient


@lru_cache
def get_config() -> AppConfig:
    return load_config()


@lru_cache
def get_upstream_client() -> UpstreamClient:
    config = get_config()
    return UpstreamClient(base_url=config["API_BASE_URL"], timeout=config["UPSTREAM_TIMEOUT"])


@lru_cache
def get_sheet_publisher() -> SheetPublisher:
    config = get_config()
    sheets_client = GoogleSheetsClient(
        spreadsheet_id=config["SPREADSHEET_ID"],
        credentials=config["GOOGLE_CREDENTIALS"],
    )
    return SheetPublisher(sheets_client, sheet_name=config["SHEET_NAME"])


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """Extract the caller's token from ``Bearer <token>`` or a bare token.

    The token is never interpreted, only forwarded upstream.
    """
    if authorization is None or not authorization.strip():
        raise Unauthorized("Missing authorization header.")

    token = authorization.strip()
    scheme, _, rest = token.partition(" ")
    if scheme.lower() == "bearer":
        token = rest.strip()

    if not token or any(char.isspace() for char in token):
        raise Unauthorized("Malformed authorization header.")
    return token

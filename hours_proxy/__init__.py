"""Hours Proxy - a backend proxy for a time-tracking frontend.

This package forwards requests to the upstream time-tracking API and
publishes the Detailed Report to Google Sheets.
"""

__version__ = "0.1.0"

from .reports.aggregator import build_layout
from .sheets.client import GoogleSheetsClient
from .sheets.publisher import SheetPublisher
from .upstream.client import UpstreamClient


__all__ = [
    "GoogleSheetsClient",
    "SheetPublisher",
    "UpstreamClient",
    "build_layout",
]

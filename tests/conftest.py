"""
Pytest configuration and shared fixtures for the hours proxy tests.
"""

import sys
from pathlib import Path

import pytest

# Make the root-level package importable without installing it
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture
def make_entry():
    """Build a raw time-log entry the way the frontend posts it."""

    def _make_entry(date, amount=0, labor=0, billable_hours=0, **overrides):
        entry = {
            "date": date,
            "userName": "Ana Diaz",
            "clientName": "Acme",
            "projectName": "Website",
            "taskName": "Design",
            "billable": True,
            "billableAmount": amount,
            "startFinish": "09:00 - 11:00",
            "laborHours": labor,
            "billableHours": billable_hours,
            "note": "",
        }
        entry.update(overrides)
        return entry

    return _make_entry

"""
Environments Module - External Service Integrations

This module holds the integrations the assistant talks to. Google
Calendar is the system of record for events; the assistant never stores
events itself.

Architecture Overview:
======================
environments/
├── __init__.py           # Module exports
├── base.py               # CalendarBackend contract + exceptions
└── google/
    └── calendar/         # Google Calendar API
        ├── __init__.py
        ├── client.py     # Calendar API client (httpx)
        └── schemas.py    # Calendar data structures
"""

from app.environments.base import (
    CalendarBackend,
    BatchItemResult,
    EnvironmentError,
    AuthenticationError,
    TokenExpiredError,
    APIError,
)

__all__ = [
    "CalendarBackend",
    "BatchItemResult",
    "EnvironmentError",
    "AuthenticationError",
    "TokenExpiredError",
    "APIError",
]

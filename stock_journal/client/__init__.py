"""Python client for the Stock Journal API (session state + role tracking)."""

from .api import ApiError, JournalClient
from .session import SessionState

__all__ = ["ApiError", "JournalClient", "SessionState"]

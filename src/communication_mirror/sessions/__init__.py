"""
Conversation sessions: bounded, expiring interaction history.
"""

from communication_mirror.sessions.context_formatter import format_context, format_time_ago
from communication_mirror.sessions.store import SessionStore, utc_now

__all__ = ["SessionStore", "utc_now", "format_context", "format_time_ago"]

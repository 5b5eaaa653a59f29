"""
MentorHub database utilities.

Provides collection names and index setup for the application.
"""

from mentorhub.database.collections import (
    CIRCLES,
    APPLICATIONS,
    CHANGE_REQUESTS,
    FOLLOWS,
    USERS,
    SESSIONS,
    RESOURCES,
    DISCUSSION_POSTS,
    ensure_indexes,
)

__all__ = [
    "CIRCLES",
    "APPLICATIONS",
    "CHANGE_REQUESTS",
    "FOLLOWS",
    "USERS",
    "SESSIONS",
    "RESOURCES",
    "DISCUSSION_POSTS",
    "ensure_indexes",
]

"""Shared test fixtures for MentorHub tests."""

import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from mentorhub.database import (
    APPLICATIONS,
    CHANGE_REQUESTS,
    CIRCLES,
    DISCUSSION_POSTS,
    FOLLOWS,
    RESOURCES,
    SESSIONS,
    USERS,
)
from mentorhub.services.revalidation import PathRevalidator

COLLECTION_NAMES = [
    CIRCLES,
    APPLICATIONS,
    CHANGE_REQUESTS,
    FOLLOWS,
    USERS,
    SESSIONS,
    RESOURCES,
    DISCUSSION_POSTS,
]


def make_cursor(docs):
    """A Motor-like cursor whose sort() chains and to_list() returns docs."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


@pytest.fixture
def cursor():
    return make_cursor


@pytest.fixture
def collections():
    cols = {}
    for name in COLLECTION_NAMES:
        col = AsyncMock()
        # Motor's find() returns a cursor synchronously (not a coroutine)
        col.find = MagicMock(return_value=make_cursor([]))
        col.find_one.return_value = None
        col.count_documents.return_value = 0
        col.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        cols[name] = col
    return cols


@pytest.fixture
def mock_db(collections):
    db = MagicMock()
    db.__getitem__ = MagicMock(side_effect=lambda key: collections[key])
    return db


@pytest.fixture
def revalidated_paths():
    return []


@pytest.fixture
def revalidator(revalidated_paths):
    return PathRevalidator([revalidated_paths.append])


@pytest.fixture
def mentor_id():
    return "user_mentor"


@pytest.fixture
def creator_id():
    return "user_creator"


@pytest.fixture
def mentee_id():
    return "user_mentee"


@pytest.fixture
def make_circle(mentor_id):
    """Build a circle document; self-mentored unless creatorId is overridden."""
    def _make(**overrides):
        now = datetime.now(timezone.utc)
        circle = {
            "_id": ObjectId(),
            "creatorId": mentor_id,
            "mentorId": mentor_id,
            "title": "Career changers into data",
            "description": "Eight weeks of portfolio reviews",
            "tags": ["data"],
            "status": "OPEN",
            "maxCapacity": 10,
            "durationWeeks": 8,
            "createdAt": now - timedelta(days=3),
            "updatedAt": now - timedelta(days=3),
        }
        circle.update(overrides)
        return circle
    return _make


@pytest.fixture
def self_mentored_circle(make_circle):
    return make_circle()


@pytest.fixture
def co_governed_circle(make_circle, creator_id, mentor_id):
    """Creator and mentor are different people."""
    return make_circle(creatorId=creator_id, mentorId=mentor_id)


@pytest.fixture
def make_application(mentee_id):
    def _make(circle_id, status="PENDING", minutes_ago=60, **overrides):
        created = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        application = {
            "_id": ObjectId(),
            "circleId": circle_id,
            "menteeId": mentee_id,
            "intentStatement": "I want to move into analytics",
            "status": status,
            "createdAt": created,
            "updatedAt": created,
        }
        application.update(overrides)
        return application
    return _make

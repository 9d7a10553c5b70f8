# /tests/conftest.py

import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.orm import sessionmaker

from classgrader.db.database import build_engine, create_tables
from classgrader.services.database_service import DatabaseService
from classgrader.services.id_allocator import PushIdAllocator

PROFESSOR_ID = "prof_test_uid"


@pytest.fixture
def engine():
    """A fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://")
    create_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_service(engine):
    """
    Creates a NEW, CLEAN DatabaseService for EACH test function, bound to the
    in-memory database instead of the configured one.
    """
    session_factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return DatabaseService(session_factory=session_factory, allocator=PushIdAllocator())


@pytest.fixture
def professor_id():
    return PROFESSOR_ID


@pytest.fixture
def mock_ai_client():
    """A stand-in for AIServiceClient with async extraction and grading calls."""
    client = MagicMock()
    client.extract_students = AsyncMock(return_value=[])
    client.grade_paper = AsyncMock()
    return client

"""Shared fixtures."""

import pytest

from training_insights.db import Database, SignalStore


@pytest.fixture
def db():
    """Fresh in-memory database with all tables."""
    database = Database("sqlite:///:memory:")
    database.create_tables()
    yield database
    database.close()


@pytest.fixture
def store(db):
    return SignalStore(db)

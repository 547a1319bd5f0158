"""Shared fixtures for unit and acceptance tests."""
import pytest

from adapters.sql_schema import create_db_engine


@pytest.fixture
def engine(tmp_path):
    """
    SQLite engine on a file in tmp_path.

    A file database (not :memory:) so that several connections, including
    ones opened from other threads, see the same data.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'data' / 'agent.db'}")
    yield engine
    engine.dispose()

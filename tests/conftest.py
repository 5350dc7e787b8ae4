"""
conftest.py
-----------
Shared pytest fixtures for memo engine tests.

Provides fixtures for:
- Database setup and teardown
- One fixture per entity manager
- Seeded users and memos
"""
from datetime import datetime, timedelta, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_alembic_dir():
    """Path to the packaged Alembic directory."""
    from memo.core.paths import ALEMBIC_DIR

    return ALEMBIC_DIR


# ----- Time helpers -----

def utc(year, month, day, hour=0, minute=0):
    """Aware UTC datetime shorthand."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    """Fixed reference instant for ordering-sensitive tests."""
    return utc(2024, 1, 15, 12, 0)


@pytest.fixture
def later(base_time):
    """Return base_time shifted by a number of minutes."""

    def _later(minutes):
        return base_time + timedelta(minutes=minutes)

    return _later


# ----- Test Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_alembic_dir):
    """
    Create test database instance with schema.

    The schema is created straight from the ORM models, so MemoDB finds
    an existing file and skips Alembic.
    """
    from memo.database.manager import MemoDB
    from memo.database.models import Base
    from sqlalchemy import create_engine

    engine = create_engine(f"sqlite:///{test_db_path}")
    Base.metadata.create_all(engine)

    db = MemoDB(db_path=test_db_path, alembic_dir=test_alembic_dir)

    yield db

    db.engine.dispose()
    engine.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    Provides a session with automatic rollback after test.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


@pytest.fixture
def counter_manager(db_session):
    """Create CounterManager instance for testing."""
    from memo.database.managers.counter_manager import CounterManager
    return CounterManager(db_session)


@pytest.fixture
def tag_manager(db_session):
    """Create TagManager instance for testing."""
    from memo.database.managers.tag_manager import TagManager
    return TagManager(db_session)


@pytest.fixture
def user_manager(db_session):
    """Create UserManager instance for testing."""
    from memo.database.managers.user_manager import UserManager
    return UserManager(db_session)


@pytest.fixture
def config_manager(db_session):
    """Create SysConfigManager instance for testing."""
    from memo.database.managers.sys_config_manager import SysConfigManager
    return SysConfigManager(db_session)


@pytest.fixture
def comment_manager(db_session):
    """Create CommentManager instance for testing."""
    from memo.database.managers.comment_manager import CommentManager
    return CommentManager(db_session)


@pytest.fixture
def relation_manager(db_session):
    """Create RelationManager instance for testing."""
    from memo.database.managers.relation_manager import RelationManager
    return RelationManager(db_session)


@pytest.fixture
def memo_manager(db_session):
    """Create MemoManager instance for testing."""
    from memo.database.managers.memo_manager import MemoManager
    return MemoManager(db_session)


# ----- Seeded Data -----

@pytest.fixture
def alice(user_manager):
    """Memo author."""
    return user_manager.create({"username": "alice", "display_name": "Alice"})


@pytest.fixture
def bob(user_manager):
    """Commenter who is often mentioned."""
    return user_manager.create({"username": "bob", "display_name": "Bob"})


@pytest.fixture
def carol(user_manager):
    """Third user, for mentions that must not leak."""
    return user_manager.create({"username": "carol", "display_name": "Carol"})


@pytest.fixture
def memo(memo_manager, alice):
    """A memo of alice without tags."""
    return memo_manager.create({"user_id": alice.id, "content": "Plain memo"})

#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the memo system.

Provides the MemoDB class for interacting with the SQLite database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transactional session scopes exposing per-session managers
    - Migration management via Alembic
    - Seeding of runtime policy defaults
    - Convenience entry points for statistics and health checks

Notes
==============
- Every write and its counter/tag side effects share one session_scope()
  transaction; an exception anywhere rolls all of it back
- All datetime fields are UTC-aware
- SAVEPOINTs are enabled on the pysqlite driver so get-or-create races
  only roll back the losing insert
- Transactions start with BEGIN IMMEDIATE: concurrent writers queue on
  the busy timeout instead of failing with "database is locked"
- Managers exposed inside session_scope() are per thread
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

# --- Local imports ---
from memo.core.exceptions import DatabaseError
from memo.core.logging_manager import MemoLogger
from .decorators import handle_db_errors, log_database_operation
from .health_monitor import HealthMonitor
from .managers import (
    CommentManager,
    CounterManager,
    MemoManager,
    RelationManager,
    SysConfigManager,
    TagManager,
    UserManager,
)
from .models import Base
from .query_analytics import QueryAnalytics, StatisticsSnapshot

# Seconds a writer waits for the database lock before giving up
SQLITE_BUSY_TIMEOUT = 30


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself so SAVEPOINT works under pysqlite.

    The write lock is taken when the transaction begins, so a unit of
    work that reads before it writes cannot deadlock against another
    writer. Also turns on foreign key enforcement for every connection.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# ----- Main Database Manager -----
class MemoDB:
    """
    Main database manager for the memo database.

    Attributes:
        - db_path (Path): Filesystem path to the SQLite database file.
        - alembic_dir (Path): Filesystem path to the Alembic directory.
        - engine (Engine): SQLAlchemy engine instance.
        - SessionLocal (sessionmaker): SQLAlchemy session factory.

    Usage:
        db = MemoDB("~/path/to/memo.db", ALEMBIC_DIR)
        with db.session_scope() as session:
            memo = db.memos.create({"user_id": 1, "content": "#idea\\nhello"})
            db.comments.create({"memo_id": memo.id, "user_id": 2, "content": "nice"})
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        alembic_dir: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path (str | Path): Path to the SQLite file.
            alembic_dir (str | Path): Path to the Alembic directory.
            log_dir (str | Path): Directory for log files (optional)
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.alembic_dir = Path(alembic_dir).expanduser().resolve()

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve() / "system"
            self.logger: Optional[MemoLogger] = MemoLogger(
                self.log_dir,
                component_name="database",
            )
        else:
            self.logger = None

        # Service components
        self.health_monitor = HealthMonitor(self.logger)
        self.query_analytics = QueryAnalytics(self.logger)

        # Per-session managers (set inside session_scope), one set per thread
        self._local = threading.local()

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start",
                    {
                        "db_path": str(self.db_path),
                        "alembic_dir": str(self.alembic_dir),
                    },
                )

            is_new = not self.db_path.exists()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
                connect_args={
                    "timeout": SQLITE_BUSY_TIMEOUT,
                    "check_same_thread": False,
                },
            )
            _enable_sqlite_savepoints(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()

            if is_new:
                self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except DatabaseError:
            raise
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self):
        """
        Provide a transactional scope around a unit of work.

        Managers bound to the session are available as properties
        (db.memos, db.comments, ...) for the duration of the scope.

        Usage:
            with db.session_scope() as session:
                db.relations.add(user_id, memo_id, "LIKE")
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        previous = getattr(self._local, "managers", {})
        self._local.managers = {
            "memos": MemoManager(session, self.logger),
            "comments": CommentManager(session, self.logger),
            "relations": RelationManager(session, self.logger),
            "tags": TagManager(session, self.logger),
            "users": UserManager(session, self.logger),
            "counters": CounterManager(session, self.logger),
            "config": SysConfigManager(session, self.logger),
        }

        if self.logger:
            self.logger.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            if self.logger:
                self.logger.log_debug("session_commit", {"session_id": session_id})

        except Exception as e:
            session.rollback()
            if self.logger:
                self.logger.log_error(
                    e, {"operation": "session_rollback", "session_id": session_id}
                )
            raise
        finally:
            self._local.managers = previous
            session.close()
            if self.logger:
                self.logger.log_debug("session_close", {"session_id": session_id})

    def get_session(self) -> Session:
        """Create and return a new SQLAlchemy session."""
        return self.SessionLocal()

    # -------------------------------------------------------------------------
    # Manager Properties
    # -------------------------------------------------------------------------

    def _manager(self, name: str) -> Any:
        manager = getattr(self._local, "managers", {}).get(name)
        if manager is None:
            raise DatabaseError(
                f"'{name}' manager requires an active session. "
                "Use within session_scope: "
                f"with db.session_scope() as session: db.{name}..."
            )
        return manager

    @property
    def memos(self) -> MemoManager:
        """Access MemoManager. Raises DatabaseError outside session_scope."""
        return self._manager("memos")

    @property
    def comments(self) -> CommentManager:
        """Access CommentManager. Raises DatabaseError outside session_scope."""
        return self._manager("comments")

    @property
    def relations(self) -> RelationManager:
        """Access RelationManager. Raises DatabaseError outside session_scope."""
        return self._manager("relations")

    @property
    def tags(self) -> TagManager:
        """Access TagManager. Raises DatabaseError outside session_scope."""
        return self._manager("tags")

    @property
    def users(self) -> UserManager:
        """Access UserManager. Raises DatabaseError outside session_scope."""
        return self._manager("users")

    @property
    def counters(self) -> CounterManager:
        """Access CounterManager. Raises DatabaseError outside session_scope."""
        return self._manager("counters")

    @property
    def config(self) -> SysConfigManager:
        """Access SysConfigManager. Raises DatabaseError outside session_scope."""
        return self._manager("config")

    # -------------------------------------------------------------------------
    # Alembic
    # -------------------------------------------------------------------------

    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        try:
            if self.logger:
                self.logger.log_debug("Setting up Alembic configuration...")

            alembic_cfg: Config = Config()
            alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
            alembic_cfg.set_main_option(
                "file_template",
                "%%(year)d%%(month).2d%%(day).2d_%%(hour).2d%%(minute).2d_%%(slug)s",
            )
            return alembic_cfg
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Initialize database - create tables if needed and run migrations.

        Actions:
            If the database has no tables,
                creates all tables from the ORM models
                stamps the Alembic revision to head
                seeds the policy defaults
            If not,
                runs pending migrations to update schema
        """
        try:
            with self.engine.connect() as conn:
                tables = self.engine.dialect.get_table_names(conn)

            if not tables:
                Base.metadata.create_all(bind=self.engine)
                command.stamp(self.alembic_cfg, "head")
                self.seed_defaults()
                if self.logger:
                    self.logger.log_operation(
                        "fresh_database_created",
                        {"tables_created": len(Base.metadata.tables)},
                    )
            else:
                self.upgrade_database()
                if self.logger:
                    self.logger.log_operation(
                        "existing_database_migrated",
                        {"table_count": len(tables)},
                    )
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to the given Alembic revision.

        Args:
            revision: Target revision (default 'head')
        """
        try:
            command.upgrade(self.alembic_cfg, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    def get_migration_status(self) -> Dict[str, Optional[str]]:
        """
        Current Alembic revision of the database.

        Returns:
            {"current_revision": str | None,
             "status": "up_to_date" | "needs_migration"}
        """
        with self.engine.connect() as conn:
            context = MigrationContext.configure(conn)
            current_rev = context.get_current_revision()

        return {
            "current_revision": current_rev,
            "status": "up_to_date" if current_rev else "needs_migration",
        }

    # -------------------------------------------------------------------------
    # Convenience
    # -------------------------------------------------------------------------

    def seed_defaults(self) -> int:
        """Insert missing policy switches with their default values."""
        with self.session_scope():
            return self.config.seed_defaults()

    def get_user_statistics(self, user_id: int) -> StatisticsSnapshot:
        """Statistics snapshot of a user, in its own session."""
        with self.session_scope() as session:
            return self.query_analytics.get_user_statistics(session, user_id)

    def mark_mentions_read(self, user_id: int, at: Optional[datetime] = None) -> bool:
        """Move a user's watermark forward, in its own session."""
        with self.session_scope():
            return self.users.mark_read(user_id, at)

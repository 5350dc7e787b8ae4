"""Tests for database decorators and context managers."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from memo.core.exceptions import DatabaseError, ValidationError
from memo.core.logging_manager import MemoLogger
from memo.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)


class TestDatabaseOperation:
    """Tests for DatabaseOperation context manager."""

    def test_successful_operation(self):
        """DatabaseOperation should log completion on success."""
        mock_logger = MagicMock(spec=MemoLogger)

        with DatabaseOperation(mock_logger, "sync_tags", {"memo_id": 4}):
            result = 1 + 1

        assert result == 2
        mock_logger.log_operation.assert_called_once()
        call_args = mock_logger.log_operation.call_args
        assert call_args[0][0] == "sync_tags_completed"
        assert call_args[0][1]["success"] is True
        assert call_args[0][1]["memo_id"] == 4

    def test_successful_operation_with_none_logger(self):
        """DatabaseOperation should work with None logger (uses NullLogger)."""
        with DatabaseOperation(None, "sync_tags"):
            result = 1 + 1

        assert result == 2

    def test_integrity_error_raises_database_error(self):
        mock_logger = MagicMock(spec=MemoLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "sync_tags"):
                raise IntegrityError("statement", {}, Exception("duplicate"))

        assert "Data integrity violation" in str(exc_info.value)
        mock_logger.log_error.assert_called_once()

    def test_sqlalchemy_error_raises_database_error(self):
        mock_logger = MagicMock(spec=MemoLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "sync_tags"):
                raise SQLAlchemyError("connection failed")

        assert "Database operation failed" in str(exc_info.value)

    def test_other_exceptions_propagate(self):
        mock_logger = MagicMock(spec=MemoLogger)

        with pytest.raises(ValidationError):
            with DatabaseOperation(mock_logger, "sync_tags"):
                raise ValidationError("bad tag")

        mock_logger.log_error.assert_called_once()


class _Worker:
    def __init__(self, logger=None):
        self.logger = logger

    @handle_db_errors
    @log_database_operation("do_work")
    def work(self, value):
        if value == "integrity":
            raise IntegrityError("statement", {}, Exception("unique"))
        if value == "invalid":
            raise ValidationError("invalid")
        return value * 2


class TestDecorators:
    """Tests for log_database_operation and handle_db_errors."""

    def test_logs_completion(self):
        mock_logger = MagicMock(spec=MemoLogger)
        assert _Worker(mock_logger).work(3) == 6
        assert mock_logger.log_operation.call_args[0][0] == "do_work_completed"

    def test_without_logger(self):
        assert _Worker().work(2) == 4

    def test_integrity_error_translated(self):
        mock_logger = MagicMock(spec=MemoLogger)
        with pytest.raises(DatabaseError, match="Data integrity violation"):
            _Worker(mock_logger).work("integrity")
        mock_logger.log_error.assert_called_once()

    def test_validation_error_untouched(self):
        with pytest.raises(ValidationError):
            _Worker().work("invalid")

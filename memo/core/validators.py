#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for memo engine operations.

Provides type-safe conversion and validation used by the entity
managers before anything is written to the database.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError


MAX_TAG_LENGTH = 255


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If a field is missing or empty
        """
        for field in required_fields:
            if field not in data or data[field] is None or data[field] == "":
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize a string value: strip whitespace, empty becomes None.

        Args:
            value: Value to normalize

        Returns:
            Stripped string or None
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Args:
            value: Value to convert

        Returns:
            Boolean value or None

        Raises:
            ValidationError: If conversion fails
        """
        if isinstance(value, bool):
            return value
        elif isinstance(value, int):
            if value in (0, 1):
                return bool(value)
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        elif isinstance(value, str):
            if value.lower() in ("true", "1", "yes", "on"):
                return True
            elif value.lower() in ("false", "0", "no", "off"):
                return False
            raise ValidationError(f"Cannot convert '{value}' to boolean")
        elif value is not None:
            return bool(value)
        return None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer safely.

        Returns:
            Integer value or None when the value is missing or not numeric
        """
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """
        Normalize a timestamp to an aware UTC datetime.

        SQLite returns naive datetimes; those are taken to be UTC.

        Args:
            value: datetime or ISO-8601 string

        Returns:
            UTC-aware datetime or None

        Raises:
            ValidationError: If the value cannot be parsed
        """
        if value is None:
            return None
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError as e:
                raise ValidationError(f"Invalid timestamp: {value}") from e
        if not isinstance(value, datetime):
            raise ValidationError(f"Invalid timestamp type: {type(value)}")
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def validate_tag_name(name: Any) -> str:
        """
        Validate a tag name. Names are matched exactly, so nothing is
        stripped or case-folded here.

        Args:
            name: Candidate tag name

        Returns:
            The tag name unchanged

        Raises:
            ValidationError: If the name is empty, too long, or contains
                whitespace or the list delimiter
        """
        if not isinstance(name, str) or not name:
            raise ValidationError(f"Tag name must be a non-empty string: {name!r}")
        if len(name) > MAX_TAG_LENGTH:
            raise ValidationError(
                f"Tag name longer than {MAX_TAG_LENGTH} characters: {name[:20]!r}..."
            )
        if "," in name:
            raise ValidationError(f"Tag name cannot contain ',': {name!r}")
        if any(ch.isspace() for ch in name):
            raise ValidationError(f"Tag name cannot contain whitespace: {name!r}")
        return name

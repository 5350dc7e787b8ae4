#!/usr/bin/env python3
"""
sys_config_manager.py
--------------------
Reads and writes runtime policy switches stored in sys_configs.

Known keys:
    OPEN_COMMENT: Comments are accepted at all
    ANONYMOUS_COMMENT: Comments without an account are accepted
    COMMENT_APPROVED: Anonymous comments wait for moderation
    OPEN_LIKE: Likes and favorites are accepted
"""
from __future__ import annotations

from typing import Dict, Optional

from memo.database.decorators import handle_db_errors
from memo.database.models import SysConfig
from .base_manager import BaseManager


OPEN_COMMENT = "OPEN_COMMENT"
ANONYMOUS_COMMENT = "ANONYMOUS_COMMENT"
COMMENT_APPROVED = "COMMENT_APPROVED"
OPEN_LIKE = "OPEN_LIKE"

DEFAULTS: Dict[str, tuple] = {
    OPEN_COMMENT: ("true", "Accept comments on memos"),
    ANONYMOUS_COMMENT: ("false", "Accept comments from visitors without an account"),
    COMMENT_APPROVED: ("true", "Hold anonymous comments until approved"),
    OPEN_LIKE: ("true", "Accept likes and favorites"),
}


class SysConfigManager(BaseManager):
    """Key/value access to sys_configs."""

    @handle_db_errors
    def get_string(self, key: str) -> Optional[str]:
        """
        Effective value of a key: its value, else its default value.

        Unknown keys fall back to the built-in defaults, then None.
        """
        config = self.session.get(SysConfig, key)
        if config is not None:
            return config.effective_value
        if key in DEFAULTS:
            return DEFAULTS[key][0]
        return None

    def get_boolean(self, key: str) -> bool:
        """True only when the effective value is 'true' (any case)."""
        return (self.get_string(key) or "").lower() == "true"

    @handle_db_errors
    def set_value(self, key: str, value: Optional[str]) -> SysConfig:
        """Set the explicit value of a key, creating the row if needed."""
        config = self.session.get(SysConfig, key)
        if config is None:
            default, description = DEFAULTS.get(key, (None, None))
            config = SysConfig(key=key, default_value=default, description=description)
            self.session.add(config)
        config.value = value
        self.session.flush()
        return config

    @handle_db_errors
    def seed_defaults(self) -> int:
        """Insert rows for known keys that are missing. Returns rows added."""
        added = 0
        for key, (default, description) in DEFAULTS.items():
            if self.session.get(SysConfig, key) is None:
                self.session.add(
                    SysConfig(key=key, default_value=default, description=description)
                )
                added += 1
        self.session.flush()
        return added

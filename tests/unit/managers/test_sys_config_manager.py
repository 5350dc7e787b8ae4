"""
test_sys_config_manager.py
--------------------------
Unit tests for SysConfigManager policy switches.
"""
from memo.database.managers.sys_config_manager import (
    ANONYMOUS_COMMENT,
    COMMENT_APPROVED,
    DEFAULTS,
    OPEN_COMMENT,
    OPEN_LIKE,
)
from memo.database.models import SysConfig


class TestDefaults:
    def test_builtin_defaults_without_rows(self, config_manager):
        assert config_manager.get_boolean(OPEN_COMMENT) is True
        assert config_manager.get_boolean(ANONYMOUS_COMMENT) is False
        assert config_manager.get_boolean(COMMENT_APPROVED) is True
        assert config_manager.get_boolean(OPEN_LIKE) is True

    def test_unknown_key(self, config_manager):
        assert config_manager.get_string("NO_SUCH_KEY") is None
        assert config_manager.get_boolean("NO_SUCH_KEY") is False

    def test_seed_is_idempotent(self, config_manager, db_session):
        assert config_manager.seed_defaults() == len(DEFAULTS)
        assert config_manager.seed_defaults() == 0
        assert db_session.query(SysConfig).count() == len(DEFAULTS)


class TestSetValue:
    def test_explicit_value_wins(self, config_manager):
        config_manager.set_value(OPEN_LIKE, "FALSE")
        assert config_manager.get_string(OPEN_LIKE) == "FALSE"
        assert config_manager.get_boolean(OPEN_LIKE) is False

    def test_cleared_value_falls_back_to_default(self, config_manager):
        config_manager.seed_defaults()
        config_manager.set_value(ANONYMOUS_COMMENT, "true")
        config_manager.set_value(ANONYMOUS_COMMENT, None)
        assert config_manager.get_string(ANONYMOUS_COMMENT) == "false"

    def test_custom_key(self, config_manager):
        row = config_manager.set_value("SITE_TITLE", "Notes")
        assert row.default_value is None
        assert config_manager.get_string("SITE_TITLE") == "Notes"

#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the memo database.

Each manager handles one concern and inherits from BaseManager. All of
them work on the session they are given, so side effects commit with
the write that triggered them.

Available Managers:
    BaseManager: Abstract base class with common utilities
    CounterManager: Denormalized memo counters (comment, like, view)
    TagManager: Tag registry and Tag.memo_count synchronization
    UserManager: Users and the mentions watermark
    SysConfigManager: Runtime policy switches
    CommentManager: Comments, moderation and mention queries
    RelationManager: Likes and favorites
    MemoManager: Memo lifecycle

Usage:
    from memo.database.managers import CommentManager, TagManager

    comment_mgr = CommentManager(session, logger)
    tag_mgr = TagManager(session, logger)
"""
from .base_manager import BaseManager
from .counter_manager import CounterManager
from .tag_manager import TagManager, TagSyncResult
from .user_manager import UserManager
from .sys_config_manager import SysConfigManager
from .comment_manager import CommentManager
from .relation_manager import RelationManager
from .memo_manager import MemoManager

__all__ = [
    "BaseManager",
    "CounterManager",
    "TagManager",
    "TagSyncResult",
    "UserManager",
    "SysConfigManager",
    "CommentManager",
    "RelationManager",
    "MemoManager",
]

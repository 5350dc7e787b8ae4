"""
Memo Engine
-----------
Consistency and aggregation core for a memo (short note) service.

Subpackages:
    core: Exceptions, logging, validation and path configuration
    utils: Mention and tag parsing helpers
    database: ORM models, entity managers, analytics and CLI
"""
__version__ = "1.0.0"

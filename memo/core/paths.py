#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the memo engine.

The project structure:
    ROOT/
    ├── memo/          # Package code (migrations live in memo/migrations)
    ├── data/          # SQLite database
    └── logs/          # Application logs

Paths are plain defaults: every CLI command accepts overrides.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/memo/core/paths.py.
    """
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "memo"
DATA_DIR = ROOT / "data"

# --- Database ---
ALEMBIC_DIR = PACKAGE_DIR / "migrations"
DB_PATH = DATA_DIR / "memo.db"

# ---- Logs ----
LOG_DIR = ROOT / "logs"

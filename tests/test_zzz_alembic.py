"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
"""

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

from asmr.db.base import Base
from asmr.db import models  # noqa: F401

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _alembic(*args: str, database_url: str) -> subprocess.CompletedProcess[str]:
    env = {**os.environ, "ASMR_DATABASE_URL": database_url}
    return subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        cwd=PROJECT_ROOT,
        env=env,
        capture_output=True,
        text=True,
    )


def test_upgrade_creates_every_mapped_table(tmp_path) -> None:
    """alembic upgrade head builds the same tables as the ORM metadata."""
    db_path = tmp_path / "migrated.db"
    result = _alembic("upgrade", "head", database_url=f"sqlite+aiosqlite:///{db_path}")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"

    with sqlite3.connect(db_path) as conn:
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert set(Base.metadata.tables) <= tables


def test_downgrade_to_base(tmp_path) -> None:
    url = f"sqlite+aiosqlite:///{tmp_path / 'migrated.db'}"
    assert _alembic("upgrade", "head", database_url=url).returncode == 0
    result = _alembic("downgrade", "base", database_url=url)
    assert result.returncode == 0, f"alembic downgrade failed: {result.stderr}"

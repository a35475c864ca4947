import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from src.migrators.ghost_store import GhostStore

MAPPED_AUTHOR_ID = "5f1a2b3c4d5e6f708192a3b4"


@pytest.fixture(autouse=True)
def reports_in_tmp(tmp_path, monkeypatch):
    """Reports are written relative to the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path / "reports" / "migration"


@pytest.fixture
def store():
    s = GhostStore.connect(":memory:")
    s.create_schema()
    s.insert("users_migration", {"id": "aaaaaaaaaaaaaaaaaaaaaaaa", "user_id": MAPPED_AUTHOR_ID, "external_id": "42"})
    s.insert("tags", {"id": "bbbbbbbbbbbbbbbbbbbbbb01", "name": "News", "slug": "news"})
    s.insert("tags", {"id": "bbbbbbbbbbbbbbbbbbbbbb02", "name": "Python", "slug": "python"})
    yield s
    s.close()

"""Unit tests for database URL handling."""
import pytest

from app.database import async_database_url


class TestAsyncDatabaseUrl:

    @pytest.mark.parametrize(
        "raw",
        [
            "postgresql://user:secret@db:5432/rentmatch",
            "postgres://user:secret@db:5432/rentmatch",
            "postgresql+psycopg2://user:secret@db:5432/rentmatch",
        ],
    )
    def test_sync_schemes_use_asyncpg(self, raw):
        assert async_database_url(raw) == "postgresql+asyncpg://user:secret@db:5432/rentmatch"

    def test_asyncpg_url_unchanged(self):
        raw = "postgresql+asyncpg://user:secret@db:5432/rentmatch"
        assert async_database_url(raw) == raw

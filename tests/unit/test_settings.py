"""
Test suite for configuration loading.

System role: Verification of environment-driven settings
"""

import pytest

from segment_index.configs.database import DatabaseSettings
from segment_index.configs.vector_index import VectorIndexSettings


class TestVectorIndexSettings:
    """Test suite for VectorIndexSettings."""

    def test_defaults_should_match_retrieval_contract(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test dimension, threshold and limits defaults."""
        monkeypatch.delenv("VECTOR_INDEX_EMBEDDING_DIMENSION", raising=False)

        settings = VectorIndexSettings(_env_file=None)

        assert settings.embedding_dimension == 1536
        assert settings.similarity_threshold == 0.7
        assert (settings.default_limit, settings.max_limit) == (10, 50)
        assert settings.embedding_batch_size == 100

    def test_env_prefix_should_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test VECTOR_INDEX_ variables are read."""
        monkeypatch.setenv("VECTOR_INDEX_EMBEDDING_DIMENSION", "384")
        monkeypatch.setenv("VECTOR_INDEX_N_PROBE", "8")

        settings = VectorIndexSettings(_env_file=None)

        assert settings.embedding_dimension == 384
        assert settings.n_probe == 8


class TestDatabaseSettings:
    """Test suite for DatabaseSettings."""

    def test_url_should_be_built_from_parts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the asyncpg URL and SSL parameter."""
        monkeypatch.delenv("POSTGRES_URL", raising=False)

        settings = DatabaseSettings(
            _env_file=None, host="db", port=5433, user="u", password="p", db="seg", sslmode="require"
        )

        assert settings.async_database_url == "postgresql+asyncpg://u:p@db:5433/seg?ssl=require"
        assert settings.is_sqlite is False

    def test_url_override_should_win(self) -> None:
        """Test an explicit URL selects SQLite."""
        settings = DatabaseSettings(_env_file=None, url="sqlite+aiosqlite:///segments.db")

        assert settings.async_database_url == "sqlite+aiosqlite:///segments.db"
        assert settings.is_sqlite is True

"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from shortlink.app import build_service
from shortlink.config import Config, load_config
from shortlink.database import InMemoryCache, InMemoryURLStore, RedisCache, URLStorePostgres


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the caller's environment and any .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ["DATABASE_URL", "REDIS_URL", "BASE_URL", "SHORT_CODE_LENGTH", "MAX_COLLISION_RETRIES", "PORT"]:
        monkeypatch.delenv(name, raising=False)


class TestConfig:

    def test_defaults(self):
        config = load_config()

        assert config.database_url.startswith("postgresql://")
        assert config.redis_url is None
        assert config.short_code_length == 7
        assert config.max_collision_retries == 5
        assert config.port == 8000
        assert not config.uses_memory_store
        assert not config.uses_memory_cache

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "memory://")
        monkeypatch.setenv("REDIS_URL", "memory://")
        monkeypatch.setenv("SHORT_CODE_LENGTH", "9")
        monkeypatch.setenv("PORT", "9000")

        config = load_config()

        assert config.uses_memory_store
        assert config.uses_memory_cache
        assert config.short_code_length == 9
        assert config.port == 9000

    def test_from_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("BASE_URL=https://sho.rt\n")

        assert load_config().base_url == "https://sho.rt"

    @pytest.mark.parametrize("field, value", [
        ("short_code_length", 0),
        ("short_code_length", 44),
        ("max_collision_retries", -1),
        ("store_timeout_seconds", 0),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            Config(**{field: value})


class TestBuildService:

    def test_memory_backends(self):
        service = build_service(Config(database_url="memory://", redis_url="memory://"))

        assert isinstance(service.store, InMemoryURLStore)
        assert isinstance(service.cache, InMemoryCache)

    def test_postgres_and_redis(self):
        service = build_service(Config(
            database_url="postgresql://user:pw@db:5432/links",
            redis_url="redis://cache:6379/0",
            max_collision_retries=2,
            short_code_length=9,
        ))

        assert isinstance(service.store, URLStorePostgres)
        assert isinstance(service.cache, RedisCache)
        assert service.shortener.max_attempts == 2
        assert service.shortener.generator.default_length == 9

    def test_cache_disabled(self):
        service = build_service(Config(database_url="memory://"))

        assert service.cache is None

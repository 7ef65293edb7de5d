"""
Userbase Backend - Startup / Shutdown Tests
============================================

What:  Drives the application lifespan directly and the uvicorn entrypoint
       with a patched Server.run.
Why:   ASGITransport never runs the lifespan, so the HTTP tests cannot see
       schema sync, startup failure, or engine disposal.
"""

import logging
from unittest.mock import AsyncMock

import pytest
import uvicorn
from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError

from app import main as main_module
from app import server as server_module
from app.config import Settings
from app.database import Database
from app.main import create_app, lifespan


@pytest.fixture(autouse=True)
def keep_test_logging(monkeypatch):
    """setup_logging(force=True) would replace pytest's capture handlers."""
    monkeypatch.setattr(main_module, "setup_logging", lambda app_settings: None)


def make_settings(url, **overrides):
    values = {"database_url": url, "environment": "test", "log_level": "WARNING"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'lifecycle.db'}"


def spy_on_dispose(database):
    database.dispose = AsyncMock(side_effect=database.dispose)
    return database.dispose


async def table_names(database):
    async with database.engine.connect() as conn:
        return await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())


class TestLifespan:

    @pytest.mark.asyncio
    async def test_synchronize_creates_users_table(self, db_url):
        database = Database(db_url)
        app = create_app(database=database, app_settings=make_settings(db_url, database_synchronize=True))

        async with lifespan(app):
            assert "users" in await table_names(database)

    @pytest.mark.asyncio
    async def test_without_synchronize_schema_is_untouched(self, db_url):
        database = Database(db_url)
        app = create_app(database=database, app_settings=make_settings(db_url))

        async with lifespan(app):
            assert await table_names(database) == []

    @pytest.mark.asyncio
    async def test_shutdown_disposes_engine(self, db_url):
        database = Database(db_url)
        dispose = spy_on_dispose(database)
        app = create_app(database=database, app_settings=make_settings(db_url))

        async with lifespan(app):
            dispose.assert_not_awaited()

        dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_database_disposes_and_reraises(self, db_url, caplog):
        database = Database(db_url)
        database.ping = AsyncMock(side_effect=OperationalError("SELECT 1", {}, Exception("refused")))
        dispose = spy_on_dispose(database)
        app = create_app(database=database, app_settings=make_settings(db_url))

        with caplog.at_level(logging.CRITICAL, logger="app.main"):
            with pytest.raises(OperationalError):
                async with lifespan(app):
                    pytest.fail("startup should not have completed")

        dispose.assert_awaited_once()
        assert any("Database unavailable" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_production_config_problems_are_logged_not_fatal(self, db_url, caplog):
        database = Database(db_url)
        app_settings = make_settings(db_url, environment="production", cors_origin="*")
        app = create_app(database=database, app_settings=app_settings)

        with caplog.at_level(logging.ERROR, logger="app.main"):
            async with lifespan(app):
                pass

        assert any("CORS_ORIGIN" in r.getMessage() for r in caplog.records)


class TestServerMain:

    def test_failed_startup_exits_1(self, monkeypatch):
        # uvicorn returns from run() with started still False
        monkeypatch.setattr(uvicorn.Server, "run", lambda self, sockets=None: None)

        assert server_module.main() == 1

    def test_clean_run_exits_0(self, monkeypatch):
        def fake_run(self, sockets=None):
            self.started = True

        monkeypatch.setattr(uvicorn.Server, "run", fake_run)

        assert server_module.main() == 0

    def test_crash_exits_1(self, monkeypatch):
        def fake_run(self, sockets=None):
            raise RuntimeError("bind failed")

        monkeypatch.setattr(uvicorn.Server, "run", fake_run)

        assert server_module.main() == 1

"""Shared test fixtures for Energy Ledger."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import aiosqlite
import pytest
import pytest_asyncio

from energy_ledger.config.manager import ConfigManager
from energy_ledger.config.schema import AppConfig
from energy_ledger.db.engine import close_db, init_db
from energy_ledger.db.repository import Repository
from energy_ledger.ledger import EnergyLedger
from energy_ledger.timezone_utils import resolve_timezone


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("db:\n  path: ':memory:'\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user)
    mgr.load()
    return mgr


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Provide a fresh database file for each test."""
    conn = await init_db(tmp_path / "test.db")
    yield conn
    await close_db()


@pytest_asyncio.fixture
async def repo(db: aiosqlite.Connection, config: AppConfig) -> Repository:
    """Provide a repository with a fresh database."""
    return Repository(db, resolve_timezone(config.timezone))


@pytest_asyncio.fixture
async def ledger(repo: Repository, config: AppConfig) -> EnergyLedger:
    return EnergyLedger(repo, config)

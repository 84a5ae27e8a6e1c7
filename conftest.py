"""Pytest configuration and fixtures for termxfer tests.

CRITICAL: Protects the user's real configuration and bookmarks from test modifications.
"""

import shutil
from pathlib import Path

import pytest

PROTECTED_FILES = ["config.toml", "bookmarks.toml", ".bookmarks.key"]


@pytest.fixture(scope="session", autouse=True)
def protect_production_config():
    """Protect ~/.termxfer/{config.toml,bookmarks.toml,.bookmarks.key} from tests.

    CRITICAL PROTECTION: Tests should NEVER modify production files. Losing
    the key file makes every saved password unrecoverable.

    This fixture:
    1. Backs up each existing file before any tests run
    2. Restores it after all tests complete
    """
    config_dir = Path.home() / ".termxfer"
    backups = []

    for name in PROTECTED_FILES:
        path = config_dir / name
        backup_path = config_dir / f"{name}.pytest-backup"
        if path.exists():
            shutil.copy2(path, backup_path)
            backups.append((path, backup_path))
            print(f"\n[PYTEST] Protected {name} - backup at {backup_path}")

    yield

    for path, backup_path in backups:
        if backup_path.exists():
            shutil.copy2(backup_path, path)
            backup_path.unlink()
            print(f"\n[PYTEST] Restored {path.name} from backup")


@pytest.fixture
def isolated_config(tmp_path):
    """Provide isolated config directory for tests.

    Use this fixture instead of modifying ~/.termxfer.

    Example:
        def test_something(isolated_config):
            config_path = isolated_config / "config.toml"
            # Safe to modify - it's in tmp_path
    """
    config_dir = tmp_path / ".termxfer"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture
def mock_config_path(isolated_config, monkeypatch):
    """Point ConfigManager at the isolated directory instead of ~/.termxfer.

    Example:
        def test_something(mock_config_path):
            ConfigManager.save_config(config)  # Safe!
    """
    from termxfer.config_manager import ConfigManager

    config_file = isolated_config / "config.toml"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_DIR", isolated_config)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_file)
    return config_file

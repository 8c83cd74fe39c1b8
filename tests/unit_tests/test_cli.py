import sqlite3

import pytest
from click.testing import CliRunner
from school_directory.cli import cli
from school_directory.config.settings import get_settings


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    db_path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "images"))
    monkeypatch.delenv("S3_BUCKET_NAME", raising=False)
    get_settings.cache_clear()
    yield db_path
    get_settings.cache_clear()


def test_show_config(cli_env):
    result = CliRunner().invoke(cli, ["show-config"])

    assert result.exit_code == 0
    assert f"Database URL: sqlite:///{cli_env}" in result.output
    assert "Storage Backend: local" in result.output


def test_init_db_creates_schools_table(cli_env):
    result = CliRunner().invoke(cli, ["init-db"])

    assert result.exit_code == 0
    conn = sqlite3.connect(cli_env)
    try:
        row = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='schools'").fetchone()
    finally:
        conn.close()
    assert row == ("schools",)

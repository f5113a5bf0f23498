import pytest

from localcooks.adapters.sqlite.migrator import DEFAULT_MIGRATIONS_DIR
from localcooks.api import deps
from localcooks.app_shell import cli


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    db_path = tmp_path / "data" / "cli.db"
    monkeypatch.setenv("LOCALCOOKS_DB_PATH", str(db_path))
    monkeypatch.setenv("LOCALCOOKS_MIGRATIONS_DIR", DEFAULT_MIGRATIONS_DIR)
    monkeypatch.delenv("LOCALCOOKS_RULES_PATH", raising=False)
    deps.get_settings.cache_clear()
    yield db_path
    deps.get_settings.cache_clear()


def test_stats_without_database(cli_env):
    assert cli.main(["stats"]) == 1


def test_migrate_then_stats(cli_env, capsys):
    assert cli.main(["migrate", "--dry-run"]) == 0
    assert "2 migration(s) pending" in capsys.readouterr().out

    assert cli.main(["migrate"]) == 0
    assert cli_env.exists()
    assert "Applied 2 migration(s)" in capsys.readouterr().out

    assert cli.main(["migrate"]) == 0
    assert "Applied 0 migration(s)" in capsys.readouterr().out

    assert cli.main(["stats"]) == 0
    out = capsys.readouterr().out
    assert "Verified: 0" in out
    assert "Total:    0" in out

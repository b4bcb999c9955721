"""
tests/test_cli.py -- The management CLI (main.py).
"""

from __future__ import annotations

import pytest

import main as cli
from auth.passwords import verify_password
from auth.store import UserStore
from core.config import Settings, get_settings
from conftest import TEST_ROUNDS, TEST_SECRET


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    settings = Settings(_env_file=None, secret_key=TEST_SECRET, database_url=url, bcrypt_rounds=TEST_ROUNDS)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return url


def test_create_user(db_url, capsys):
    assert cli.main(["create-user", "Ada", "ada@example.com", "--role", "admin", "--password", "s3cret-pass"]) == 0
    assert "with role 'admin'" in capsys.readouterr().out
    store = UserStore(db_url)
    user = store.get_by_email("ada@example.com")
    store.close()
    assert user.role == "admin"
    assert verify_password("s3cret-pass", user.password_hash)


def test_duplicate_email(db_url):
    args = ["create-user", "Ada", "ada@example.com", "--password", "s3cret-pass"]
    assert cli.main(args) == 0
    assert cli.main(args) == 1


def test_short_password(db_url):
    assert cli.main(["create-user", "Ada", "ada@example.com", "--password", "123"]) == 1


def test_prompted_passwords_must_match(db_url, monkeypatch):
    answers = iter(["first-pass", "second-pass"])
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: next(answers))
    assert cli.main(["create-user", "Ada", "ada@example.com"]) == 1


def test_unknown_role_is_rejected_by_parser(db_url):
    with pytest.raises(SystemExit):
        cli.main(["create-user", "Ada", "ada@example.com", "--role", "root", "--password", "s3cret-pass"])


def test_missing_secret_key_exits_with_config_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SECRET_KEY", raising=False)
    get_settings.cache_clear()
    try:
        assert cli.main(["create-user", "Ada", "ada@example.com", "--password", "s3cret-pass"]) == 2
    finally:
        get_settings.cache_clear()

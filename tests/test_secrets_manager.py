"""
Unit tests for the secrets manager.
"""

import json

import pytest

from shared.config import BaseConfig
from shared.secrets_manager import SecretsManager, load_secrets, main


@pytest.fixture
def secrets_file(tmp_path):
    return str(tmp_path / "secrets.json")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("XAPI_MASTER_KEY", "XAPI_SECRETS_FILE", "XAPI_STORE_URL"):
        monkeypatch.delenv(name, raising=False)


class TestSecretsManager:
    """Test cases for SecretsManager."""

    def test_requires_master_key(self, secrets_file):
        with pytest.raises(ValueError):
            SecretsManager(secrets_file=secrets_file)

    def test_set_and_get(self, secrets_file):
        manager = SecretsManager("master", secrets_file)

        manager.set_secret("store_url", "redis://:pw@cache:6379/0")

        assert manager.get_secret("store_url") == "redis://:pw@cache:6379/0"
        with open(secrets_file) as f:
            assert "redis://" not in json.dumps(json.load(f))

    def test_environment_wins(self, secrets_file, monkeypatch):
        manager = SecretsManager("master", secrets_file)
        manager.set_secret("store_url", "from-file")
        monkeypatch.setenv("XAPI_STORE_URL", "from-env")

        assert manager.get_secret("store_url") == "from-env"

    def test_wrong_master_key_returns_default(self, secrets_file):
        SecretsManager("master", secrets_file).set_secret("store_url", "value")

        other = SecretsManager("other", secrets_file)

        assert other.get_secret("store_url", default="fallback") == "fallback"

    def test_delete_and_list(self, secrets_file):
        manager = SecretsManager("master", secrets_file)
        manager.set_secret("b", "2")
        manager.set_secret("a", "1")

        assert manager.list_secrets() == ["a", "b"]
        assert manager.delete_secret("a") is True
        assert manager.delete_secret("missing") is True
        assert manager.list_secrets() == ["b"]


class TestLoadSecrets:
    """Test cases for load_secrets."""

    def test_skipped_without_master_key(self):
        config = BaseConfig()

        assert load_secrets(config) is True
        assert config.store_url == "redis://localhost:6379/0"

    def test_applies_found_secret(self, secrets_file):
        SecretsManager("master", secrets_file).set_secret("store_url", "redis://secret:6379/2")
        config = BaseConfig(master_key="master", secrets_file=secrets_file)

        assert load_secrets(config) is True
        assert config.store_url == "redis://secret:6379/2"

    def test_missing_secret_keeps_configured_value(self, secrets_file):
        config = BaseConfig(master_key="master", secrets_file=secrets_file, store_url="redis://configured")

        assert load_secrets(config) is False
        assert config.store_url == "redis://configured"


class TestSecretsCli:
    """Test cases for the secrets CLI."""

    def test_set_get_delete(self, secrets_file, monkeypatch, capsys):
        monkeypatch.setenv("XAPI_MASTER_KEY", "master")

        assert main(["set", "token", "abc", "--secrets-file", secrets_file]) == 0
        assert main(["get", "token", "--secrets-file", secrets_file]) == 0
        assert capsys.readouterr().out.strip() == "abc"

        assert main(["delete", "token", "--secrets-file", secrets_file]) == 0
        assert main(["get", "token", "--secrets-file", secrets_file]) == 1

    def test_missing_master_key(self, secrets_file):
        assert main(["list", "--secrets-file", secrets_file]) == 1

"""Credential lookup order."""
import pytest
from unittest.mock import patch

from feedgate.errors import MissingSecretError
from feedgate.utils.secrets import get_openai_key, read_mounted_secret, resolve_secret


class TestResolveSecret:

    def test_mounted_file_wins(self, tmp_path):
        (tmp_path / "openai_api_key").write_text("sk-mounted\n")
        assert resolve_secret("openai_api_key", "sk-env", secrets_dir=tmp_path) == "sk-mounted"

    def test_configured_value_used_without_mount(self, tmp_path):
        assert resolve_secret("openai_api_key", " sk-env ", secrets_dir=tmp_path) == "sk-env"

    def test_blank_mount_falls_through(self, tmp_path):
        (tmp_path / "openai_api_key").write_text("   \n")
        assert read_mounted_secret("openai_api_key", tmp_path) is None
        assert resolve_secret("openai_api_key", "sk-env", secrets_dir=tmp_path) == "sk-env"

    def test_nothing_found(self, tmp_path):
        with pytest.raises(MissingSecretError, match="openai_api_key"):
            resolve_secret("openai_api_key", "", secrets_dir=tmp_path)

    def test_missing_secret_is_a_value_error(self, tmp_path):
        with pytest.raises(ValueError):
            resolve_secret("openai_api_key", None, secrets_dir=tmp_path)

    def test_openai_key_reads_settings(self, tmp_path):
        with patch("feedgate.utils.secrets.settings.openai_api_key", "sk-from-dotenv"):
            assert get_openai_key(secrets_dir=tmp_path) == "sk-from-dotenv"

    def test_openai_key_uses_configured_secrets_dir(self, tmp_path):
        (tmp_path / "openai_api_key").write_text("sk-mounted")
        with patch("feedgate.utils.secrets.settings.secrets_dir", str(tmp_path)):
            assert get_openai_key() == "sk-mounted"

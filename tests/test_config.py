"""
Unit tests for the configuration manager.
"""

from pathlib import Path

import pytest

from config import ConfigurationManager, get_config, get_secret
from cert_extraction.pipeline import CertificateExtractor
from cert_extraction.postprocessor.vocabulary import DEFAULT_VOCABULARY, Vocabulary
from cert_extraction.utils.exceptions import ConfigurationError


@pytest.fixture
def write_config(tmp_path):
    def _write(content):
        path = tmp_path / "settings.yaml"
        path.write_text(content, encoding="utf-8")
        return path
    return _write


class TestConfigurationManager:
    """Test loading and dot-notation access."""

    def test_default_settings(self):
        assert get_config("confidence.review_threshold") == 0.7
        assert get_config("extraction.mode") == "multi_strategy"
        assert get_config("llm.api_key_env.openai") == "OPENAI_API_KEY"

    def test_missing_keys_return_default(self):
        assert get_config("nonexistent.key", "fallback") == "fallback"
        assert get_config("llm.provider.deeper", 3) == 3

    def test_singleton(self):
        assert ConfigurationManager() is ConfigurationManager()

    def test_get_all_is_a_copy(self):
        config = ConfigurationManager()
        config.get_all()['extraction'] = None
        assert get_config("extraction.mode") == "multi_strategy"

    def test_custom_file(self, write_config):
        ConfigurationManager(write_config("extraction:\n  mode: pattern\n"))
        assert get_config("extraction.mode") == "pattern"
        assert CertificateExtractor().mode == "pattern"

    def test_empty_file_uses_code_defaults(self, write_config):
        ConfigurationManager(write_config(""))
        assert get_config("confidence.review_threshold", 0.7) == 0.7

    def test_reload(self, write_config):
        path = write_config("extraction:\n  mode: pattern\n")
        config = ConfigurationManager(path)
        path.write_text("extraction:\n  mode: llm\n", encoding="utf-8")
        config.reload()
        assert get_config("extraction.mode") == "llm"

    def test_switch_to_another_file(self, write_config):
        assert get_config("extraction.mode") == "multi_strategy"
        ConfigurationManager(write_config("extraction:\n  mode: llm\n"))
        assert get_config("extraction.mode") == "llm"

    def test_log_file_path_resolved_against_custom_file(self, write_config, tmp_path):
        ConfigurationManager(write_config("logging:\n  file:\n    path: logs/run.log\n"))
        assert get_config("logging.file.path") == str(tmp_path / "logs" / "run.log")

    def test_bundled_log_file_path_is_absolute(self):
        assert get_config("logging.file.path").endswith("cert_extraction.log")
        assert Path(get_config("logging.file.path")).is_absolute()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigurationManager(tmp_path / "absent.yaml")

    @pytest.mark.parametrize("content", ["- a\n- b\n", "key: [unclosed\n"])
    def test_malformed_file(self, write_config, content):
        with pytest.raises(ConfigurationError):
            ConfigurationManager(write_config(content))

    def test_vocabulary_overrides(self, write_config):
        ConfigurationManager(write_config("vocabulary:\n  trusted_issuers: [Acme, Initech]\n"))
        vocabulary = Vocabulary.from_config()
        assert vocabulary.trusted_issuers == ('acme', 'initech')
        assert vocabulary.platform_names == DEFAULT_VOCABULARY.platform_names


class TestSecrets:
    """Test environment-only secrets."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "  sk-test  ")
        assert get_secret("OPENAI_API_KEY") == "sk-test"

    def test_unset_or_blank(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")
        assert get_secret("OPENAI_API_KEY") is None
        assert get_secret("GEMINI_API_KEY") is None
        assert get_secret(None) is None

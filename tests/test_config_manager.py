"""Tests for settings storage."""
import json

import pytest

from siemforward.core.exceptions import ConfigurationError
from siemforward.utils.config_manager import (
    ConfigManager, DEFAULT_RSYSLOG_CONFIG, DEFAULT_SELECTORS
)


class TestConfigManager:
    """Test loading, saving and resetting settings."""

    def test_defaults_without_file(self, tmp_path):
        settings = ConfigManager(tmp_path).load()
        assert settings['config_path'] == DEFAULT_RSYSLOG_CONFIG
        assert settings['selectors'] == DEFAULT_SELECTORS
        assert len(DEFAULT_SELECTORS) == 5

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv('SIEMFORWARD_HOME', str(tmp_path))
        assert ConfigManager().config_file == tmp_path / "settings.json"

    def test_save_merges(self, tmp_path):
        """Saving one key keeps the other."""
        manager = ConfigManager(tmp_path / "conf")
        manager.save(config_path="/tmp/siem.conf")
        manager.save(selectors=["kern.*"])

        settings = manager.load()
        assert settings == {'config_path': '/tmp/siem.conf', 'selectors': ['kern.*']}

    def test_malformed_file(self, tmp_path):
        (tmp_path / "settings.json").write_text("{not json")
        with pytest.raises(ConfigurationError):
            ConfigManager(tmp_path).load()

    def test_bad_selectors(self, tmp_path):
        (tmp_path / "settings.json").write_text(json.dumps({'selectors': 'kern.*'}))
        with pytest.raises(ConfigurationError, match="list of strings"):
            ConfigManager(tmp_path).load()

    def test_reset(self, tmp_path):
        manager = ConfigManager(tmp_path)
        assert manager.reset() is False
        manager.save(config_path="/tmp/x.conf")
        assert manager.reset() is True
        assert manager.load()['config_path'] == DEFAULT_RSYSLOG_CONFIG

"""Configuration management utilities."""
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from siemforward.core.exceptions import ConfigurationError

DEFAULT_CONFIG_DIR = Path("/etc/siemforward")
DEFAULT_RSYSLOG_CONFIG = "/etc/rsyslog.d/60-siem.conf"

# Recommended categories for a SIEM: auth, kernel, cron, errors and general info.
DEFAULT_SELECTORS = [
    "authpriv.*",
    "kern.*",
    "cron.*",
    "*.err;*.crit;*.alert;*.emerg",
    "*.info;mail.none;authpriv.none;cron.none",
]


class ConfigManager:
    """Manages the tool's own settings (target file and selectors)."""

    def __init__(self, config_dir: Optional[Path] = None):
        env_dir = os.environ.get('SIEMFORWARD_HOME')
        self.config_dir = Path(config_dir or env_dir or DEFAULT_CONFIG_DIR)
        self.config_file = self.config_dir / "settings.json"

    @staticmethod
    def defaults() -> Dict[str, Any]:
        return {
            'config_path': DEFAULT_RSYSLOG_CONFIG,
            'selectors': list(DEFAULT_SELECTORS)
        }

    def _ensure_config_dir(self):
        """Ensure configuration directory exists."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def load(self) -> Dict[str, Any]:
        """Load settings from disk, falling back to defaults."""
        settings = self.defaults()
        if not self.config_file.exists():
            return settings

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read settings file {self.config_file}: {e}")

        if not isinstance(stored, dict):
            raise ConfigurationError(f"Settings file {self.config_file} must hold a JSON object")

        if stored.get('config_path'):
            settings['config_path'] = str(stored['config_path'])
        if stored.get('selectors'):
            selectors = stored['selectors']
            if not isinstance(selectors, list) or not all(isinstance(s, str) for s in selectors):
                raise ConfigurationError("'selectors' must be a list of strings")
            settings['selectors'] = selectors
        return settings

    def save(self, config_path: Optional[str] = None, selectors: Optional[List[str]] = None):
        """Save settings to disk."""
        try:
            self._ensure_config_dir()
        except OSError as e:
            raise ConfigurationError(f"Cannot create settings directory {self.config_dir}: {e}")

        current = self.load()
        if config_path is not None:
            current['config_path'] = config_path
        if selectors is not None:
            current['selectors'] = list(selectors)

        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(current, f, indent=2)
                f.write('\n')
        except OSError as e:
            raise ConfigurationError(f"Cannot write settings file {self.config_file}: {e}")

    def reset(self) -> bool:
        """Delete stored settings. Returns True if a file was removed."""
        if not self.config_file.exists():
            return False
        try:
            self.config_file.unlink()
        except OSError as e:
            raise ConfigurationError(f"Cannot remove settings file {self.config_file}: {e}")
        return True

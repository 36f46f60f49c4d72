"""
Configuration Management System

This module provides centralized configuration management using YAML and JSON files.
Supports dot-notation access and reloading with per-section validation.

The config directory defaults to backend/config and can be overridden with the
SIGNAL_CONTROL_CONFIG_DIR environment variable (a .env file is honoured).
"""

import os
import yaml
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv


CONFIG_DIR_ENV = "SIGNAL_CONTROL_CONFIG_DIR"


class ConfigManager:
    """
    Manage application configuration from YAML and JSON files

    Provides:
    - Load all config files on startup (keyed by file stem)
    - Dot notation access: config.get('system.tickInterval')
    - Section validation: every file must hold a mapping
    - Reload that keeps the last good version of a section whose file is broken
    - Default values for missing keys
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to config directory
                (default: $SIGNAL_CONTROL_CONFIG_DIR or backend/config)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        elif os.environ.get(CONFIG_DIR_ENV):
            self.config_dir = Path(os.environ[CONFIG_DIR_ENV])
        else:
            self.config_dir = Path(__file__).parent.parent / "config"

        self.configs, self.failed_sections = self._load_all_configs()

    def _load_all_configs(self) -> Tuple[Dict[str, Any], List[str]]:
        """
        Read every config file in the directory

        Returns:
            (sections keyed by file stem, stems of files that failed to load)
        """
        sections: Dict[str, Any] = {}
        failed: List[str] = []

        if not self.config_dir.exists():
            print(f"   [WARN] Config directory not found: {self.config_dir} (using defaults)")
            return sections, failed

        files = sorted(self.config_dir.glob("*.yaml")) + sorted(self.config_dir.glob("*.json"))
        for path in files:
            try:
                with open(path, 'r') as f:
                    data = json.load(f) if path.suffix == ".json" else yaml.safe_load(f)
            except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
                print(f"   [WARN] Failed to load {path.name}: {e}")
                failed.append(path.stem)
                continue

            data = data or {}
            if not isinstance(data, dict):
                print(f"   [WARN] Ignoring {path.name}: expected a mapping, got {type(data).__name__}")
                failed.append(path.stem)
                continue

            sections[path.stem] = data
            print(f"   [CONFIG] Loaded: {path.name}")

        return sections, failed

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot notation key

        Examples:
            config.get('system.tickInterval')
            config.get('signals.initialGreenDuration')

        Args:
            key: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.configs
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_system_config(self) -> Dict[str, Any]:
        """Get system (scheduler/orchestrator) configuration section"""
        return self.configs.get('system', {})

    def get_signal_config(self) -> Dict[str, Any]:
        """Get signal controller configuration section"""
        return self.configs.get('signals', {})

    def get_traffic_config(self) -> Dict[str, Any]:
        """Get traffic/congestion configuration section"""
        return self.configs.get('traffic', {})

    def get_prediction_config(self) -> Dict[str, Any]:
        """Get prediction configuration section"""
        return self.configs.get('prediction', {})

    def get_emergency_config(self) -> Dict[str, Any]:
        """Get emergency configuration section"""
        return self.configs.get('emergency', {})

    def reload(self) -> List[str]:
        """
        Re-read configuration files from disk

        A section whose file is now unreadable or malformed keeps its
        previously loaded values; a section whose file was removed is dropped.

        Returns:
            Names of the sections that kept their previous values
        """
        print("[CONFIG] Reloading configuration...")
        sections, failed = self._load_all_configs()

        kept = [name for name in failed if name in self.configs]
        for name in kept:
            sections[name] = self.configs[name]

        self.configs = sections
        self.failed_sections = failed
        print(f"[OK] Configuration reloaded ({len(sections)} sections)")
        return kept


# Global configuration instance (created lazily)
_config: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        load_dotenv()
        _config = ConfigManager()
    return _config


def init_config(config_dir: Optional[str] = None) -> ConfigManager:
    """Initialize the global configuration from an explicit directory"""
    global _config
    load_dotenv()
    _config = ConfigManager(config_dir)
    return _config

# ==============================================================================
# RESOURCE HARVESTER - CONFIGURATION MODULE
# ==============================================================================
# Configuration for conversion runs and the rename workflow.
#
# This module handles:
#   - Default values for all settings
#   - Filling in missing values (apply_defaults, a pure function)
#   - Loading/saving configuration from a JSON file
#
# There is no global instance: a Config is created by the caller and handed
# to a HarvestSession, which owns it for the duration of the work.
#
# Configuration is stored in: <user data dir>/config.json
#
# Usage:
#   from resource_harvester.core.config import Config
#   config = Config()
#   config.load()
#   print(config.packages_folder)
#   config.class_bit_widths = {"Trait": 32, "MyClass": 8}
#   config.save()
# ==============================================================================

import copy
import json
import os
from typing import Any, Dict, Optional

from .paths import Paths


# ==============================================================================
# DEFAULT CONFIGURATION VALUES
# ==============================================================================
# These are used when no config file exists or when values are missing.

DEFAULT_CONFIG: Dict[str, Any] = {
    # -------------------------------------------------------------------------
    # PROJECT LAYOUT
    # -------------------------------------------------------------------------
    # Folder (under the destination) that receives one subfolder per package
    "packages_folder": "Packages",

    # Folder (under the destination) for loose TGI files
    "loose_files_folder": "Loose Files",

    # File name for tuning without an n attribute
    "unnamed_tuning_name": "UnnamedTuning",

    # Ask before converting into a folder that already has files in it
    "confirm_non_empty_destination": True,

    # -------------------------------------------------------------------------
    # INSTANCE IDS
    # -------------------------------------------------------------------------
    # Extra/replacement tuning class -> instance bit width entries
    "class_bit_widths": {},

    # -------------------------------------------------------------------------
    # HISTORY
    # -------------------------------------------------------------------------
    # Record each conversion run in the history database
    "record_history": False,

    # Path to SQLite database ("" = default location in the user data dir)
    "database_path": "",

    # -------------------------------------------------------------------------
    # INDEX EXPORT
    # -------------------------------------------------------------------------
    # Default package index export format (txt, json, csv)
    "index_format": "txt",

    # -------------------------------------------------------------------------
    # ADVANCED
    # -------------------------------------------------------------------------
    # Print extra [DEBUG] lines
    "debug_mode": False,
}

INDEX_FORMATS = ("txt", "json", "csv")


def apply_defaults(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Fill missing settings with their defaults.

    Unknown keys are dropped and the input is not modified.

    Args:
        raw: Settings as loaded (may be None or partial)

    Returns:
        A complete settings dictionary

    Example:
        >>> apply_defaults({"debug_mode": True})["packages_folder"]
        'Packages'
    """
    result = copy.deepcopy(DEFAULT_CONFIG)
    if raw:
        for key, value in raw.items():
            if key in result and value is not None:
                result[key] = copy.deepcopy(value)
    return result


# ==============================================================================
# CONFIGURATION CLASS
# ==============================================================================
class Config:
    """
    Configuration manager for Resource Harvester.

    Attributes:
        config_path: Path to the configuration file
        data: Dictionary containing all settings

    Example:
        >>> config = Config(overrides={"record_history": True})
        >>> config.record_history
        True
    """

    def __init__(self, config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to config file. If None, uses default location.
            overrides: Settings to apply on top of the defaults
        """
        self.config_path = config_path or Paths.get_config_path()
        self.data: Dict[str, Any] = apply_defaults(overrides)
        self._modified = False

    # -------------------------------------------------------------------------
    # LOADING AND SAVING
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load configuration from file.

        If the file doesn't exist, defaults are used.
        Missing keys are filled with defaults.

        Returns:
            True if file was loaded, False if using defaults
        """
        if not os.path.isfile(self.config_path):
            if self.debug_mode:
                print(f"[DEBUG] Config file not found, using defaults")
            return False

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            print(f"[ERROR] Invalid config file: {e}")
            return False
        except OSError as e:
            print(f"[ERROR] Failed to load config: {e}")
            return False

        if not isinstance(loaded, dict):
            print(f"[ERROR] Invalid config file: expected an object")
            return False

        self.data = apply_defaults(loaded)
        self._modified = False
        return True

    def save(self) -> bool:
        """
        Save configuration to file.

        Returns:
            True if saved successfully
        """
        try:
            folder = os.path.dirname(self.config_path)
            if folder:
                os.makedirs(folder, exist_ok=True)

            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=4, sort_keys=True)

            print(f"[INFO] Saved config to {self.config_path}")
            self._modified = False
            return True

        except OSError as e:
            print(f"[ERROR] Failed to save config: {e}")
            return False

    def reset_to_defaults(self):
        """Reset all settings to their default values."""
        self.data = apply_defaults(None)
        self._modified = True

    # -------------------------------------------------------------------------
    # PROPERTY ACCESS
    # -------------------------------------------------------------------------

    @property
    def packages_folder(self) -> str:
        return self.data['packages_folder']

    @packages_folder.setter
    def packages_folder(self, value: str):
        self.data['packages_folder'] = value
        self._modified = True

    @property
    def loose_files_folder(self) -> str:
        return self.data['loose_files_folder']

    @loose_files_folder.setter
    def loose_files_folder(self, value: str):
        self.data['loose_files_folder'] = value
        self._modified = True

    @property
    def unnamed_tuning_name(self) -> str:
        return self.data['unnamed_tuning_name']

    @property
    def confirm_non_empty_destination(self) -> bool:
        return bool(self.data['confirm_non_empty_destination'])

    @confirm_non_empty_destination.setter
    def confirm_non_empty_destination(self, value: bool):
        self.data['confirm_non_empty_destination'] = bool(value)
        self._modified = True

    @property
    def class_bit_widths(self) -> Dict[str, int]:
        """Get the tuning class -> instance bit width overrides."""
        return {name: int(width) for name, width in self.data['class_bit_widths'].items()}

    @class_bit_widths.setter
    def class_bit_widths(self, value: Dict[str, int]):
        for name, width in value.items():
            if not 1 <= int(width) <= 64:
                raise ValueError(f"bit width for {name} must be between 1 and 64")
        self.data['class_bit_widths'] = dict(value)
        self._modified = True

    @property
    def record_history(self) -> bool:
        return bool(self.data['record_history'])

    @record_history.setter
    def record_history(self, value: bool):
        self.data['record_history'] = bool(value)
        self._modified = True

    @property
    def database_path(self) -> str:
        """Get the database path, falling back to the user data dir."""
        return self.data['database_path'] or Paths.get_database_path()

    @database_path.setter
    def database_path(self, value: str):
        self.data['database_path'] = value
        self._modified = True

    @property
    def index_format(self) -> str:
        return self.data['index_format']

    @index_format.setter
    def index_format(self, value: str):
        if value not in INDEX_FORMATS:
            raise ValueError("index_format must be 'txt', 'json', or 'csv'")
        self.data['index_format'] = value
        self._modified = True

    @property
    def debug_mode(self) -> bool:
        return bool(self.data.get('debug_mode', False))

    @debug_mode.setter
    def debug_mode(self, value: bool):
        self.data['debug_mode'] = bool(value)
        self._modified = True

    # -------------------------------------------------------------------------
    # GENERIC ACCESS
    # -------------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any):
        self.data[key] = value
        self._modified = True

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access: config['key']"""
        return self.data[key]

    def __setitem__(self, key: str, value: Any):
        """Allow dictionary-style setting: config['key'] = value"""
        self.data[key] = value
        self._modified = True

# ==============================================================================
# RESOURCE HARVESTER - PATH UTILITIES
# ==============================================================================
# Where per-user files live: config.json, the history database and saved run
# reports.
#
# Data folder by platform:
#   - Windows: %APPDATA%/ResourceHarvester/
#   - macOS:   ~/Library/Application Support/ResourceHarvester/
#   - Other:   $XDG_CONFIG_HOME/ResourceHarvester/ (~/.config by default)
#
# RESOURCE_HARVESTER_HOME replaces the data folder entirely (tests, portable
# installs).
#
# Usage:
#   from resource_harvester.core.paths import Paths
#   config = Config(Paths.get_config_path())
# ==============================================================================

import os
import sys
from datetime import datetime
from typing import Optional


APP_NAME = "ResourceHarvester"
HOME_ENV = "RESOURCE_HARVESTER_HOME"

CONFIG_FILENAME = "config.json"
DATABASE_FILENAME = "history.db"
REPORTS_FOLDER = "reports"


def _platform_data_root() -> str:
    home = os.path.expanduser('~')
    if sys.platform == 'win32':
        return os.environ.get('APPDATA', home)
    if sys.platform == 'darwin':
        return os.path.join(home, 'Library', 'Application Support')
    return os.environ.get('XDG_CONFIG_HOME', os.path.join(home, '.config'))


class Paths:
    """Per-user file locations. All methods create the folders they return."""

    # Resolved platform folder; the environment override is re-read every call
    _user_data_dir: Optional[str] = None

    @classmethod
    def get_user_data_dir(cls) -> str:
        override = os.environ.get(HOME_ENV)
        if override:
            folder = override
        else:
            if cls._user_data_dir is None:
                cls._user_data_dir = os.path.join(_platform_data_root(), APP_NAME)
            folder = cls._user_data_dir

        os.makedirs(folder, exist_ok=True)
        return folder

    @classmethod
    def get_config_path(cls) -> str:
        return os.path.join(cls.get_user_data_dir(), CONFIG_FILENAME)

    @classmethod
    def get_database_path(cls) -> str:
        """Default location of the run history database."""
        return os.path.join(cls.get_user_data_dir(), DATABASE_FILENAME)

    @classmethod
    def get_reports_dir(cls) -> str:
        """Folder for conversion reports saved without an explicit path."""
        folder = os.path.join(cls.get_user_data_dir(), REPORTS_FOLDER)
        os.makedirs(folder, exist_ok=True)
        return folder

    @classmethod
    def new_report_path(cls, prefix: str = "convert") -> str:
        """
        Timestamped report path in the reports folder.

        Example:
            >>> Paths.new_report_path()  # doctest: +SKIP
            '.../reports/convert-20240501-142233.json'
        """
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        return os.path.join(cls.get_reports_dir(), f"{prefix}-{stamp}.json")

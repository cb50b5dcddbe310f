# ==============================================================================
# SESSION MODULE
# ==============================================================================
# Explicit context for one piece of work (a conversion, a rename).
#
# A HarvestSession owns the configuration, the optional history database and
# the prompter. Each conversion run creates its own InstanceCorrelationMap
# through new_correlation_map(); maps are never shared between runs.
#
# Usage:
#   with HarvestSession(Config(), prompter=ConsolePrompter()) as session:
#       report = materialize_folder("Mods/**/*", "Project", session=session)
# ==============================================================================

from typing import Optional

from .config import Config
from .correlation import InstanceCorrelationMap
from .database import Database
from .prompts import AutoPrompter, Prompter


class HarvestSession:
    """
    Attributes:
        config (Config):     Settings for this session
        prompter (Prompter): Where questions go
    """

    def __init__(self, config: Optional[Config] = None,
                 prompter: Optional[Prompter] = None,
                 database: Optional[Database] = None):
        """
        Args:
            config: Settings (defaults are used when None)
            prompter: Prompt implementation (accepts defaults and declines
                      every confirmation when None)
            database: History database; opened lazily from config when
                      record_history is on and none is given
        """
        self.config = config or Config(overrides={})
        self.prompter = prompter or AutoPrompter(choice=None)
        self._database = database
        self._owns_database = False

    @property
    def database(self) -> Optional[Database]:
        """The history database, or None when history is off."""
        if self._database is None and self.config.record_history:
            self._database = Database(self.config.database_path)
            self._owns_database = True
        return self._database

    @property
    def class_bit_widths(self):
        return self.config.class_bit_widths

    def new_correlation_map(self) -> InstanceCorrelationMap:
        """Create the correlation map for a new run."""
        return InstanceCorrelationMap()

    def debug(self, message: str):
        if self.config.debug_mode:
            print(f"[DEBUG] {message}")

    def close(self):
        if self._database is not None and self._owns_database:
            self._database.close()
            self._database = None
            self._owns_database = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

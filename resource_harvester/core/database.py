# ==============================================================================
# DATABASE MODULE
# ==============================================================================
# SQLite history of conversion runs. Uses SQLAlchemy ORM for clean data access.
#
# Tables:
#   - harvest_runs:        One row per folder conversion
#   - harvested_resources: One row per resource written by a run
#
# The history is for the user to look back at what was converted where. It
# is never read back by a conversion: instance correlation is per run only.
# ==============================================================================

import os
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import create_engine, Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base, sessionmaker, relationship

# ==============================================================================
# SQLAlchemy Base Class
# ==============================================================================
Base = declarative_base()


# ==============================================================================
# HARVEST RUN MODEL
# ==============================================================================
# Example:
#   run = HarvestRun(source_pattern="E:\\Mods\\**\\*", destination="E:\\Project")
# ==============================================================================
class HarvestRun(Base):
    """
    A single folder-to-project conversion.

    Attributes:
        id (int):               Unique identifier
        source_pattern (str):   Glob pattern that was converted
        destination (str):      Project folder written to
        status (str):           "running", "completed", "cancelled"
        sources_processed (int): Number of source files read
        resources_written (int): Number of files written
        skipped_sources (int):  Number of sources skipped
        warning_count (int):    Number of per-file warnings
        started_at:             When the run began
        finished_at:            When the run ended
    """
    __tablename__ = 'harvest_runs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_pattern = Column(String(1000), nullable=False)
    destination = Column(String(1000), nullable=False)
    status = Column(String(20), default='running')  # running, completed, cancelled
    sources_processed = Column(Integer, default=0)
    resources_written = Column(Integer, default=0)
    skipped_sources = Column(Integer, default=0)
    warning_count = Column(Integer, default=0)
    warnings = Column(Text, nullable=True)
    started_at = Column(DateTime, default=datetime.utcnow)
    finished_at = Column(DateTime, nullable=True)

    # Relationships
    resources = relationship("HarvestedResource", back_populates="run", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<HarvestRun(id={self.id}, destination='{self.destination}', status='{self.status}')>"


# ==============================================================================
# HARVESTED RESOURCE MODEL
# ==============================================================================
# Example:
#   res = HarvestedResource(run_id=1, resource_key="6017E896-00000000-...",
#                           category="Tuning", destination_path="...\\buff_Fun.xml")
# ==============================================================================
class HarvestedResource(Base):
    """
    A resource written by a run.

    Attributes:
        id (int):               Unique identifier
        run_id (int):           Foreign key to the run
        resource_key (str):     Key formatted as TTTTTTTT-GGGGGGGG-IIIIIIIIIIIIIIII
        category (str):         Category label (e.g. "Tuning", "SimData")
        source_path (str):      Package or loose file it came from
        destination_path (str): File that was written
        hash_md5 (str):         MD5 of the written bytes
        size (int):             Size of the written bytes
    """
    __tablename__ = 'harvested_resources'

    id = Column(Integer, primary_key=True, autoincrement=True)
    run_id = Column(Integer, ForeignKey('harvest_runs.id'), nullable=False)
    resource_key = Column(String(40), nullable=False)
    category = Column(String(100), nullable=True)
    source_path = Column(String(1000), nullable=True)
    destination_path = Column(String(1000), nullable=False)
    hash_md5 = Column(String(32), nullable=True)
    size = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    run = relationship("HarvestRun", back_populates="resources")

    def __repr__(self):
        return f"<HarvestedResource(id={self.id}, key='{self.resource_key}')>"


# ==============================================================================
# DATABASE CLASS
# ==============================================================================
# Usage:
#   db = Database(Paths.get_database_path())
#   run = db.start_run("E:\\Mods\\**\\*", "E:\\Project")
#   db.add_resources_bulk(run.id, [...])
#   db.finish_run(run.id, "completed", ...)
# ==============================================================================
class Database:
    """
    Database manager for the run history.

    Attributes:
        db_path (str): Path to the SQLite database file
        engine: SQLAlchemy engine instance
        Session: SQLAlchemy session factory
    """

    def __init__(self, db_path: str):
        """
        Initialize the database connection.

        Args:
            db_path: Path to the SQLite database file.
                    The file will be created if it doesn't exist.
        """
        self.db_path = db_path

        folder = os.path.dirname(db_path)
        if folder:
            os.makedirs(folder, exist_ok=True)

        self.engine = create_engine(f'sqlite:///{db_path}', echo=False)

        # Objects stay readable after their session closes
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

        self._create_tables()

    def _create_tables(self):
        """Create all database tables if they don't exist."""
        Base.metadata.create_all(self.engine)

    def close(self):
        """Dispose of the engine's connections."""
        self.engine.dispose()

    # ==========================================================================
    # RUN OPERATIONS
    # ==========================================================================

    def start_run(self, source_pattern: str, destination: str) -> HarvestRun:
        """
        Record the start of a conversion.

        Returns:
            The created HarvestRun (with its id)
        """
        session = self.Session()
        try:
            run = HarvestRun(source_pattern=source_pattern, destination=destination)
            session.add(run)
            session.commit()
            session.refresh(run)
            return run
        finally:
            session.close()

    def finish_run(self, run_id: int, status: str, sources_processed: int = 0,
                   resources_written: int = 0, skipped_sources: int = 0,
                   warnings: Optional[List[str]] = None) -> Optional[HarvestRun]:
        """Record the outcome of a conversion."""
        session = self.Session()
        try:
            run = session.get(HarvestRun, run_id)
            if run is None:
                return None
            run.status = status
            run.sources_processed = sources_processed
            run.resources_written = resources_written
            run.skipped_sources = skipped_sources
            run.warning_count = len(warnings or [])
            run.warnings = "\n".join(warnings or []) or None
            run.finished_at = datetime.utcnow()
            session.commit()
            session.refresh(run)
            return run
        finally:
            session.close()

    def get_run(self, run_id: int) -> Optional[HarvestRun]:
        session = self.Session()
        try:
            return session.get(HarvestRun, run_id)
        finally:
            session.close()

    def get_recent_runs(self, limit: int = 20) -> List[HarvestRun]:
        """Get the most recent runs, newest first."""
        session = self.Session()
        try:
            return (session.query(HarvestRun)
                    .order_by(HarvestRun.id.desc())
                    .limit(limit)
                    .all())
        finally:
            session.close()

    # ==========================================================================
    # RESOURCE OPERATIONS
    # ==========================================================================

    def add_resources_bulk(self, run_id: int, resources: List[Dict]):
        """
        Add written resources in a single transaction.

        Args:
            run_id: Run the resources belong to
            resources: Dicts with resource_key, category, source_path,
                       destination_path, hash_md5, size
        """
        if not resources:
            return
        session = self.Session()
        try:
            session.bulk_insert_mappings(
                HarvestedResource,
                [dict(resource, run_id=run_id) for resource in resources]
            )
            session.commit()
        finally:
            session.close()

    def get_run_resources(self, run_id: int) -> List[HarvestedResource]:
        session = self.Session()
        try:
            return (session.query(HarvestedResource)
                    .filter(HarvestedResource.run_id == run_id)
                    .order_by(HarvestedResource.id)
                    .all())
        finally:
            session.close()

    def find_resources_by_key(self, resource_key: str) -> List[HarvestedResource]:
        """Find every recorded write of a key, across all runs."""
        session = self.Session()
        try:
            return (session.query(HarvestedResource)
                    .filter(HarvestedResource.resource_key == resource_key.upper())
                    .order_by(HarvestedResource.id)
                    .all())
        finally:
            session.close()

    # ==========================================================================
    # STATISTICS
    # ==========================================================================

    def get_stats(self) -> dict:
        """Get overall statistics about the history."""
        session = self.Session()
        try:
            return {
                'runs': session.query(HarvestRun).count(),
                'completed_runs': session.query(HarvestRun).filter(
                    HarvestRun.status == 'completed'
                ).count(),
                'resources': session.query(HarvestedResource).count(),
            }
        finally:
            session.close()

"""SyncJob model - audit record of one full or incremental sync run."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from database import Base
from models.utils import generate_uuid, utc_now

JOB_STATUSES = ("running", "completed", "failed")


class SyncJob(Base):
    """A single sync run for one tenant.

    Created as ``running`` when the run starts and finalized exactly once.
    Not a checkpoint: a failed run is never resumed.
    """

    __tablename__ = "sync_jobs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    tenant_id = Column(String(36), ForeignKey("tenant_sync_configs.id"), nullable=False, index=True)
    job_type = Column(String, nullable=False)  # "full_sync" | "incremental_sync"
    status = Column(String, nullable=False, default="running")
    records_processed = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, nullable=False, default=list)  # list[str], in occurrence order
    started_at = Column(DateTime, nullable=False, default=utc_now)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    tenant = relationship("TenantSyncConfig", back_populates="sync_jobs")

    @property
    def is_finalized(self) -> bool:
        return self.completed_at is not None

    def finalize(self, status: str, processed: int, failed: int, errors: list[str]) -> None:
        """Record the terminal state of the run.

        Raises:
            ValueError: If the job was already finalized or the status is
                not terminal.
        """
        if self.is_finalized:
            raise ValueError(f"Sync job {self.id} is already finalized")
        if status not in ("completed", "failed"):
            raise ValueError(f"Invalid terminal status: {status}")
        self.status = status
        self.records_processed = processed
        self.records_failed = failed
        self.errors = list(errors)
        self.completed_at = utc_now()

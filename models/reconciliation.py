from datetime import datetime
import enum

from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, UniqueConstraint

from database.connection import Base


class RunStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ReconciliationRun(Base):
    """Persisted guard of the daily reconciliation job (one row per operating day)."""
    __tablename__ = "reconciliation_runs"
    __table_args__ = (
        UniqueConstraint("operating_day", name="uq_reconciliation_day"),
    )

    id = Column(Integer, primary_key=True)
    operating_day = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default=RunStatus.RUNNING.value)
    started_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    finished_at = Column(DateTime(timezone=True), nullable=True)
    summary = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<ReconciliationRun(day={self.operating_day}, status='{self.status}')>"

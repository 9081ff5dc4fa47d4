from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, String, Text

from brikx.database import Base, utc_now


class TimeEntry(Base):
    __tablename__ = "time_entries"

    __table_args__ = (
        Index("ix_time_entries_user_invoiced_occurred", "user_id", "invoiced_at", "occurred_on"),
    )

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    phase_code = Column(String, ForeignKey("phases.code"), nullable=False)

    occurred_on = Column(Date, nullable=False)
    # Canonical duration; hours are derived at the API boundary.
    minutes = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)

    invoiced_at = Column(Date, nullable=True)
    invoice_number = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)

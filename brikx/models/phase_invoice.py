from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from brikx.database import Base, utc_now


class PhaseInvoice(Base):
    """Partial invoice line against a fixed-fee phase budget."""

    __tablename__ = "phase_invoices"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    phase_code = Column(String, ForeignKey("phases.code"), nullable=False)

    amount_cents = Column(Integer, nullable=False)
    invoice_date = Column(Date, nullable=False)
    invoice_number = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utc_now)

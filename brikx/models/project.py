from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String
from sqlalchemy.ext.mutable import MutableDict, MutableList

from brikx.database import Base, utc_now

BILLING_TYPES = ("hourly", "fixed")


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)

    name = Column(String, nullable=False)
    client_name = Column(String, nullable=True)
    city = Column(String, nullable=True)

    billing_type = Column(String, nullable=False, default="hourly")

    # Rates and budgets are integer cents.
    default_rate_cents = Column(Integer, nullable=True)
    phase_rates_cents = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)
    phase_budgets = Column(MutableDict.as_mutable(JSON), nullable=False, default=dict)

    invoiced_phases = Column(MutableList.as_mutable(JSON), nullable=False, default=list)
    phase_invoice_meta = Column(MutableDict.as_mutable(JSON), nullable=True)

    archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

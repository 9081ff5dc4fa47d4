from sqlalchemy import Column, Integer, String

from brikx.database import Base


class Phase(Base):
    __tablename__ = "phases"

    code = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

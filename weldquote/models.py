from sqlalchemy import Column, String, DateTime, Text, Integer, JSON
from datetime import datetime
from .database import Base
from .lifecycle import QuoteStatus


class Quote(Base):
    """
    One confirmed request: job snapshot + estimate snapshot + status.

    The summary columns duplicate parts of the JSON snapshots so the list
    view does not have to parse them.
    """
    __tablename__ = "quotes"

    id = Column(String, primary_key=True)  # UUID
    status = Column(String, default=QuoteStatus.ORDERED.value, nullable=False)
    description = Column(Text, default="")
    work_type = Column(String, nullable=True)
    material = Column(String, nullable=True)
    deadline = Column(String, nullable=True)
    price_min = Column(Integer, nullable=False)
    price_max = Column(Integer, nullable=False)
    method = Column(String, nullable=False)  # 'local' | 'external' | 'external_corrected'
    job_json = Column(JSON, nullable=False)
    estimate_json = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

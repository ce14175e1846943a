from sqlalchemy import Column, String, DateTime, Text, Uuid, text, func
import uuid
from koperasi.db.base import Base


class CooperativeSetting(Base):
    """Cooperative-wide key/value settings (cutoff day, fees, rates)."""
    __tablename__ = "cooperative_setting"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    key = Column(String(100), nullable=False, unique=True, index=True)
    value = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="general")  # "general", "membership", "savings", "loan"
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP"), onupdate=func.now())

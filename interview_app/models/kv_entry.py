from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime
from interview_app.core.database import Base


class KeyValueEntry(Base):
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

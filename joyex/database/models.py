"""
Database models for Joyex job history
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class JobMode(enum.Enum):
    EDIT = "edit"
    REPLACE = "replace"


class Job(Base):
    """One persisted generation request and its outcome"""

    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(255), nullable=False, index=True)
    mode = Column(Enum(JobMode, values_callable=lambda modes: [m.value for m in modes]), nullable=False)
    prompt = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)  # Ordered input image URLs
    output_url = Column(Text, nullable=True)
    meta = Column(JSON, nullable=True)  # Expanded prompt, raw API response, resolved parameters
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (Index("idx_job_user_created", "user_id", "created_at"),)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Job(id='{self.id}', user_id='{self.user_id}', mode='{self.mode.value if self.mode else None}')>"

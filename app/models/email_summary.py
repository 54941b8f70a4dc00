# app/models/email_summary.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class EmailSummary(Base):
    __tablename__ = "email_summaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_name = Column(String(200))
    email_subject = Column(String(255))
    summary = Column(Text)
    contextual_notes = Column(Text)
    received_at = Column(DateTime, index=True)
    status = Column(String(20), default="new", nullable=False)   # new | reviewed | actioned
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = Column(DateTime)
    action_taken = Column(Boolean, default=False)
    action_notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<EmailSummary {self.id} status={self.status}>"

# app/models/call_log.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class CallLog(Base):
    __tablename__ = "call_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    call_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    caller_name = Column(String(200))
    caller_phone = Column(String(50))
    caller_type = Column(String(50), default="Parent")      # Parent | School | Employee | Other
    call_type = Column(String(50), default="Inquiry")       # Inquiry | Complaint | ...
    related_passenger_id = Column(Integer, ForeignKey("passengers.id", ondelete="SET NULL"))
    related_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    related_route_id = Column(Integer, ForeignKey("routes.id", ondelete="SET NULL"))
    subject = Column(String(255), nullable=False)
    notes = Column(Text)
    action_required = Column(Boolean, default=False)
    action_taken = Column(Text)
    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date)
    priority = Column(String(20), default="Medium", index=True)
    status = Column(String(20), default="Open", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<CallLog {self.id} subject={self.subject} status={self.status}>"

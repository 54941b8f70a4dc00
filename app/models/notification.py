# app/models/notification.py
"""
Certificate notifications sent to employees, and the system activity log
written when an employee responds through a tokenised link.
email_token gates the public document upload page.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_type = Column(String(50), default="certificate_expiry")
    entity_type = Column(String(30), nullable=False)        # driver | assistant | vehicle | ...
    entity_id = Column(Integer, nullable=False)
    certificate_type = Column(String(100))
    certificate_name = Column(String(200))
    expiry_date = Column(Date)
    recipient_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    recipient_email = Column(String(255))
    email_token = Column(String(64), unique=True, index=True)
    status = Column(String(20), default="pending", nullable=False, index=True)
    resolved_at = Column(DateTime)
    employee_response_type = Column(String(50))
    employee_response_details = Column(Text)     # JSON
    employee_response_received_at = Column(DateTime)
    admin_response_required = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Notification {self.id} {self.entity_type}:{self.entity_id} status={self.status}>"


class SystemActivity(Base):
    __tablename__ = "system_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_type = Column(String(50), nullable=False, index=True)   # document_upload | appointment_booking
    notification_id = Column(Integer, ForeignKey("notifications.id", ondelete="SET NULL"))
    entity_type = Column(String(30))
    entity_id = Column(Integer)
    entity_name = Column(String(200))
    certificate_name = Column(String(200))
    recipient_name = Column(String(200))
    recipient_email = Column(String(255))
    details = Column(Text)                       # JSON
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<SystemActivity {self.id} type={self.activity_type}>"

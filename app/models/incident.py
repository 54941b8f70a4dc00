# app/models/incident.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"))
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="SET NULL"))
    incident_type = Column(String(100), index=True)
    description = Column(Text)
    reported_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    resolved = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Incident {self.id} type={self.incident_type} resolved={self.resolved}>"

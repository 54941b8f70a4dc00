# app/models/breakdown.py
"""Vehicle breakdowns reported during a route session (PA portal or admin API)."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from app.database import Base


class VehicleBreakdown(Base):
    __tablename__ = "vehicle_breakdowns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_session_id = Column(Integer, ForeignKey("route_sessions.id", ondelete="CASCADE"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"))
    description = Column(Text)
    location = Column(String(255))
    status = Column(String(30), default="reported", nullable=False)
    reported_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<VehicleBreakdown {self.id} session={self.route_session_id}>"

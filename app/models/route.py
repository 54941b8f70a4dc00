# app/models/route.py
"""
Routes, their ordered pickup points, assigned assistants and daily sessions.
route_points.stop_order is kept dense (1..N) by route_service.
route_points.origin marks stops inserted automatically for an assistant's home.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Float, Text, ForeignKey, Table
from sqlalchemy.orm import relationship
from app.database import Base

route_assistants = Table(
    "route_assistants",
    Base.metadata,
    Column("route_id", Integer, ForeignKey("routes.id", ondelete="CASCADE"), primary_key=True),
    Column("assistant_id", Integer, ForeignKey("passenger_assistants.id", ondelete="CASCADE"), primary_key=True),
)


class Route(Base):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_number = Column(String(50), index=True)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="SET NULL"), index=True)
    driver_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"))
    am_start_time = Column(String(5))        # HH:MM
    pm_start_time = Column(String(5))
    days_of_week = Column(String(100))       # Mon,Tue,Wed
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    points = relationship("RoutePoint", order_by="RoutePoint.stop_order",
                          cascade="all, delete-orphan")
    assistants = relationship("PassengerAssistant", secondary=route_assistants)

    def __repr__(self):
        return f"<Route {self.id} number={self.route_number}>"


class RoutePoint(Base):
    __tablename__ = "route_points"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False, index=True)
    point_name = Column(String(200), nullable=False)
    address = Column(Text)
    latitude = Column(Float)
    longitude = Column(Float)
    stop_order = Column(Integer, nullable=False)
    passenger_id = Column(Integer, ForeignKey("passengers.id", ondelete="SET NULL"))
    pickup_time_am = Column(String(5))
    pickup_time_pm = Column(String(5))
    origin = Column(String(30), default="user", nullable=False)   # user | auto-assistant-home
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<RoutePoint {self.id} route={self.route_id} #{self.stop_order} {self.point_name}>"


class RouteSession(Base):
    __tablename__ = "route_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False, index=True)
    session_date = Column(Date, nullable=False, index=True)
    session_type = Column(String(2), nullable=False)          # AM | PM
    driver_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    passenger_assistant_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"))
    started_at = Column(DateTime)
    ended_at = Column(DateTime)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<RouteSession {self.id} route={self.route_id} {self.session_date} {self.session_type}>"

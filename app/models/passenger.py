# app/models/passenger.py
"""Passengers and parent/guardian contacts (many-to-many)."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, ForeignKey, UniqueConstraint
from app.database import Base


class Passenger(Base):
    __tablename__ = "passengers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False, index=True)
    dob = Column(Date)
    address = Column(Text)
    sen_requirements = Column(Text)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="SET NULL"), index=True)
    mobility_type = Column(String(50))
    route_id = Column(Integer, ForeignKey("routes.id", ondelete="SET NULL"), index=True)
    seat_number = Column(String(10))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Passenger {self.id} name={self.full_name}>"


class ParentContact(Base):
    __tablename__ = "parent_contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False)
    relationship = Column(String(50))
    phone_number = Column(String(50))
    email = Column(String(255))
    address = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ParentContact {self.id} name={self.full_name}>"


class PassengerParentContact(Base):
    __tablename__ = "passenger_parent_contacts"
    __table_args__ = (UniqueConstraint("passenger_id", "parent_contact_id"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    passenger_id = Column(Integer, ForeignKey("passengers.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_contact_id = Column(Integer, ForeignKey("parent_contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

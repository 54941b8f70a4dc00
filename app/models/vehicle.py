# app/models/vehicle.py
"""
Fleet vehicles and their update log.
Expiry date columns feed the vehicle tab of the certificate expiry report.
qr_token gates the supplier portal; off_the_road is the VOR flag.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_identifier = Column(String(100), index=True)
    registration = Column(String(50), index=True)
    make = Column(String(100))
    model = Column(String(100))
    plate_number = Column(String(50))
    plate_expiry_date = Column(Date)
    vehicle_type = Column(String(50))
    ownership_type = Column(String(50))
    mot_date = Column(Date)
    tax_date = Column(Date)
    insurance_expiry_date = Column(Date)
    tail_lift = Column(Boolean, default=False)
    loler_expiry_date = Column(Date)
    first_aid_expiry = Column(Date)
    fire_extinguisher_expiry = Column(Date)
    spare_vehicle = Column(Boolean, default=False, nullable=False)
    off_the_road = Column(Boolean, default=False, nullable=False)
    qr_token = Column(String(64), unique=True, index=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Vehicle {self.id} reg={self.registration} vor={self.off_the_road}>"


class VehicleUpdate(Base):
    __tablename__ = "vehicle_updates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False, index=True)
    update_text = Column(Text, nullable=False)
    file_urls = Column(Text)                 # JSON array of public URLs
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<VehicleUpdate {self.id} vehicle={self.vehicle_id}>"

# app/models/employee.py
"""
Employees and their one-to-one role profiles.
A driver or passenger assistant profile is created alongside its employee
and carries the certificate expiry dates tracked by expiry_service.
can_work is maintained outside this service and is only stored here.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False, index=True)
    role = Column(String(50), index=True)                  # Driver | PA | Coordinator | ...
    employment_status = Column(String(50))                 # Active | Inactive | ...
    phone_number = Column(String(50))
    personal_email = Column(String(255))
    address = Column(Text)                                 # home address
    start_date = Column(Date)
    end_date = Column(Date)
    wheelchair_access = Column(Boolean, default=False)
    can_work = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    driver = relationship("Driver", back_populates="employee", uselist=False,
                          cascade="all, delete-orphan")
    assistant = relationship("PassengerAssistant", back_populates="employee", uselist=False,
                             cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Employee {self.id} name={self.full_name} role={self.role}>"


class Driver(Base):
    __tablename__ = "drivers"

    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True)
    spare_driver = Column(Boolean, default=False)
    psv_license = Column(Boolean, default=False)

    # Certificates
    tas_badge_number = Column(String(100))
    tas_badge_expiry_date = Column(Date)
    taxi_badge_number = Column(String(100))
    taxi_badge_expiry_date = Column(Date)
    dbs_number = Column(String(100))
    dbs_expiry_date = Column(Date)
    first_aid_certificate_expiry_date = Column(Date)
    passport_expiry_date = Column(Date)
    driving_license_expiry_date = Column(Date)
    cpc_expiry_date = Column(Date)
    vehicle_insurance_expiry_date = Column(Date)
    mot_expiry_date = Column(Date)
    utility_bill_date = Column(Date)

    # Document checklist
    birth_certificate = Column(Boolean, default=False)
    marriage_certificate = Column(Boolean, default=False)
    photo_taken = Column(Boolean, default=False)
    private_hire_badge = Column(Boolean, default=False)
    paper_licence = Column(Boolean, default=False)
    taxi_plate_photo = Column(Boolean, default=False)
    logbook = Column(Boolean, default=False)

    # Training
    safeguarding_training_completed = Column(Boolean, default=False)
    safeguarding_training_date = Column(Date)
    tas_pats_training_completed = Column(Boolean, default=False)
    tas_pats_training_date = Column(Date)
    psa_training_completed = Column(Boolean, default=False)
    psa_training_date = Column(Date)

    additional_notes = Column(Text)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee", back_populates="driver")

    def __repr__(self):
        return f"<Driver employee={self.employee_id} tas={self.tas_badge_number}>"


class PassengerAssistant(Base):
    __tablename__ = "passenger_assistants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"),
                         unique=True, nullable=False)
    qr_token = Column(String(64), unique=True, index=True)
    # None = fall back to the name marker (settings.ASSISTANT_HOME_MARKER)
    auto_home_stop = Column(Boolean)

    tas_badge_number = Column(String(100))
    tas_badge_expiry_date = Column(Date)
    dbs_number = Column(String(100))
    dbs_expiry_date = Column(Date)

    safeguarding_training_completed = Column(Boolean, default=False)
    safeguarding_training_date = Column(Date)
    tas_pats_training_completed = Column(Boolean, default=False)
    tas_pats_training_date = Column(Date)

    additional_notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    employee = relationship("Employee", back_populates="assistant")

    def __repr__(self):
        return f"<PassengerAssistant {self.id} employee={self.employee_id}>"

# app/models/document.py
"""
Uploaded file metadata and the document-requirements checklist.

documents.file_url holds either one public URL or a JSON array of URLs
(assistant QR uploads store every file of one submission in a single row).
Read it through app.utils.file_urls.parse_file_urls.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Text, ForeignKey
from app.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_type = Column(String(30), index=True)       # driver | passenger_assistant | employee | vehicle
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="SET NULL"), index=True)
    route_session_id = Column(Integer, ForeignKey("route_sessions.id", ondelete="SET NULL"), index=True)
    file_name = Column(String(255))
    file_type = Column(String(100))
    file_path = Column(Text)
    file_url = Column(Text)
    doc_type = Column(String(100))
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    uploaded_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<Document {self.id} {self.doc_type} {self.file_name}>"


class DocumentRequirement(Base):
    __tablename__ = "document_requirements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    code = Column(String(100), index=True)
    subject_type = Column(String(20), nullable=False, index=True)    # driver | pa | vehicle | employee
    requires_expiry = Column(Boolean, default=False, nullable=False)
    requires_upload = Column(Boolean, default=False, nullable=False)
    requires_number = Column(Boolean, default=False, nullable=False)
    criticality = Column(String(20), default="recommended", nullable=False)
    default_validity_days = Column(Integer)
    renewal_notice_days = Column(Integer)
    is_required = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    icon_path = Column(String(255))
    color = Column(String(7))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<DocumentRequirement {self.id} {self.subject_type}:{self.name}>"


class SubjectDocument(Base):
    __tablename__ = "subject_documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requirement_id = Column(Integer, ForeignKey("document_requirements.id"), nullable=False, index=True)
    subject_type = Column(String(20), nullable=False)
    driver_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"))
    pa_employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"))
    vehicle_id = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"))
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"))
    status = Column(String(20), default="missing", nullable=False)
    certificate_number = Column(String(100))
    issue_date = Column(Date)
    expiry_date = Column(Date)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SubjectDocument {self.id} req={self.requirement_id} status={self.status}>"


class DocumentSubjectDocumentLink(Base):
    __tablename__ = "document_subject_document_links"

    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True)
    subject_document_id = Column(Integer, ForeignKey("subject_documents.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow)

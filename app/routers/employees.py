# app/routers/employees.py
"""Employees with their driver / passenger assistant profiles, and certificate uploads."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session, joinedload
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404, upload_documents
from app.models.employee import Employee, Driver, PassengerAssistant
from app.schemas.document import UploadResult
from app.schemas.employee import (
    AssistantCreate, AssistantOut, AssistantProfile, DriverCreate, DriverOut, DriverProfile,
    EmployeeCreate, EmployeeOut, EmployeeUpdate,
)
from app.services import upload_service as uploads
from app.services.audit_service import log_audit
from app.services.portal_service import issue_token
from app.services.storage import LocalObjectStorage, get_storage
router = APIRouter()


# ── Employees ────────────────────────────────────────────────────────────────

@router.get("/employees", response_model=list[EmployeeOut], summary="List employees")
def list_employees(
    search: Optional[str] = None,
    role: Optional[str] = None,
    employment_status: Optional[str] = None,
    can_work: Optional[bool] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    q = db.query(Employee).options(joinedload(Employee.driver), joinedload(Employee.assistant))
    if search:
        q = q.filter(Employee.full_name.ilike(f"%{search}%"))
    if role:
        q = q.filter(Employee.role == role)
    if employment_status:
        q = q.filter(Employee.employment_status == employment_status)
    if can_work is not None:
        q = q.filter(Employee.can_work == can_work)
    return q.order_by(Employee.full_name).limit(limit).all()


@router.post("/employees", response_model=EmployeeOut, status_code=201,
             summary="Create an employee, optionally with a driver or PA profile")
def create_employee(body: EmployeeCreate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    if not body.full_name.strip():
        raise HTTPException(status_code=400, detail="full_name is required")
    employee = Employee(**body.model_dump(exclude={"driver", "assistant"}))
    if body.driver:
        employee.driver = Driver(**body.driver.model_dump())
    if body.assistant:
        employee.assistant = PassengerAssistant(**body.assistant.model_dump(), qr_token=issue_token())
    db.add(employee)
    db.flush()

    log_audit(db, "employees", employee.id, "CREATE", user_id)
    if body.driver:
        log_audit(db, "drivers", employee.id, "CREATE", user_id)
    if body.assistant:
        log_audit(db, "passenger_assistants", employee.assistant.id, "CREATE", user_id)
    db.commit()
    db.refresh(employee)
    return employee


@router.get("/employees/{employee_id}", response_model=EmployeeOut)
def get_employee(employee_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Employee, employee_id, "Employee")


@router.put("/employees/{employee_id}", response_model=EmployeeOut)
def update_employee(employee_id: int, body: EmployeeUpdate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    employee = get_or_404(db, Employee, employee_id, "Employee")
    apply_changes(employee, body)
    log_audit(db, "employees", employee.id, "UPDATE", user_id)
    db.commit()
    db.refresh(employee)
    return employee


@router.delete("/employees/{employee_id}")
def delete_employee(employee_id: int, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    employee = get_or_404(db, Employee, employee_id, "Employee")
    db.delete(employee)
    log_audit(db, "employees", employee_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": employee_id}


@router.post("/employees/{employee_id}/documents", response_model=UploadResult,
             summary="Upload general employee documents")
async def upload_employee_documents(
    employee_id: int,
    files: list[UploadFile] = File(...),
    category: str = Form("document"),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    user_id: Optional[int] = Depends(get_acting_user_id),
):
    get_or_404(db, Employee, employee_id, "Employee")
    return await upload_documents(db, storage, files, uploads.EMPLOYEE_DOCUMENTS, employee_id, category,
                                  {"owner_type": "employee", "employee_id": employee_id}, user_id)


# ── Drivers ──────────────────────────────────────────────────────────────────

def _driver(db: Session, employee_id: int) -> Driver:
    driver = db.query(Driver).filter(Driver.employee_id == employee_id).first()
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


@router.get("/drivers", response_model=list[DriverOut], summary="List driver profiles")
def list_drivers(spare_driver: Optional[bool] = None, limit: int = 200, db: Session = Depends(get_db)):
    q = db.query(Driver)
    if spare_driver is not None:
        q = q.filter(Driver.spare_driver == spare_driver)
    return q.limit(limit).all()


@router.post("/drivers", response_model=DriverOut, status_code=201)
def create_driver(body: DriverCreate, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    get_or_404(db, Employee, body.employee_id, "Employee")
    if db.query(Driver).filter(Driver.employee_id == body.employee_id).first():
        raise HTTPException(status_code=400, detail="Employee already has a driver profile")
    driver = Driver(**body.model_dump())
    db.add(driver)
    log_audit(db, "drivers", body.employee_id, "CREATE", user_id)
    db.commit()
    db.refresh(driver)
    return driver


@router.get("/drivers/{employee_id}", response_model=DriverOut)
def get_driver(employee_id: int, db: Session = Depends(get_db)):
    return _driver(db, employee_id)


@router.put("/drivers/{employee_id}", response_model=DriverOut)
def update_driver(employee_id: int, body: DriverProfile, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    driver = _driver(db, employee_id)
    apply_changes(driver, body)
    log_audit(db, "drivers", employee_id, "UPDATE", user_id)
    db.commit()
    db.refresh(driver)
    return driver


@router.delete("/drivers/{employee_id}")
def delete_driver(employee_id: int, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(_driver(db, employee_id))
    log_audit(db, "drivers", employee_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "employee_id": employee_id}


@router.post("/drivers/{employee_id}/documents", response_model=UploadResult,
             summary="Upload driver certificate files")
async def upload_driver_documents(
    employee_id: int,
    files: list[UploadFile] = File(...),
    category: str = Form("document"),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    user_id: Optional[int] = Depends(get_acting_user_id),
):
    _driver(db, employee_id)
    return await upload_documents(db, storage, files, uploads.DRIVER_DOCUMENTS, employee_id, category,
                                  {"owner_type": "driver", "employee_id": employee_id}, user_id)


# ── Passenger assistants ─────────────────────────────────────────────────────

@router.get("/assistants", response_model=list[AssistantOut], summary="List passenger assistants")
def list_assistants(limit: int = 200, db: Session = Depends(get_db)):
    return db.query(PassengerAssistant).limit(limit).all()


@router.post("/assistants", response_model=AssistantOut, status_code=201,
             summary="Create a PA profile (issues a QR token)")
def create_assistant(body: AssistantCreate, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    get_or_404(db, Employee, body.employee_id, "Employee")
    if db.query(PassengerAssistant).filter(PassengerAssistant.employee_id == body.employee_id).first():
        raise HTTPException(status_code=400, detail="Employee already has a passenger assistant profile")
    assistant = PassengerAssistant(**body.model_dump(), qr_token=issue_token())
    db.add(assistant)
    db.flush()
    log_audit(db, "passenger_assistants", assistant.id, "CREATE", user_id)
    db.commit()
    db.refresh(assistant)
    return assistant


@router.get("/assistants/{assistant_id}", response_model=AssistantOut)
def get_assistant(assistant_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, PassengerAssistant, assistant_id, "Passenger assistant")


@router.put("/assistants/{assistant_id}", response_model=AssistantOut)
def update_assistant(assistant_id: int, body: AssistantProfile, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    assistant = get_or_404(db, PassengerAssistant, assistant_id, "Passenger assistant")
    apply_changes(assistant, body)
    log_audit(db, "passenger_assistants", assistant.id, "UPDATE", user_id)
    db.commit()
    db.refresh(assistant)
    return assistant


@router.post("/assistants/{assistant_id}/qr-token", response_model=AssistantOut,
             summary="Issue a new QR token (the old one stops working)")
def rotate_assistant_token(assistant_id: int, db: Session = Depends(get_db),
                           user_id: Optional[int] = Depends(get_acting_user_id)):
    assistant = get_or_404(db, PassengerAssistant, assistant_id, "Passenger assistant")
    assistant.qr_token = issue_token()
    log_audit(db, "passenger_assistants", assistant.id, "UPDATE", user_id)
    db.commit()
    db.refresh(assistant)
    return assistant


@router.delete("/assistants/{assistant_id}")
def delete_assistant(assistant_id: int, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, PassengerAssistant, assistant_id, "Passenger assistant"))
    log_audit(db, "passenger_assistants", assistant_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": assistant_id}


@router.post("/assistants/{assistant_id}/documents", response_model=UploadResult,
             summary="Upload PA certificate files")
async def upload_assistant_documents(
    assistant_id: int,
    files: list[UploadFile] = File(...),
    category: str = Form("document"),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    user_id: Optional[int] = Depends(get_acting_user_id),
):
    assistant = get_or_404(db, PassengerAssistant, assistant_id, "Passenger assistant")
    return await upload_documents(db, storage, files, uploads.ASSISTANT_DOCUMENTS, assistant.id, category,
                                  {"owner_type": "passenger_assistant", "employee_id": assistant.employee_id},
                                  user_id)

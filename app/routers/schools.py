# app/routers/schools.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404
from app.models.school import School
from app.schemas.school import SchoolCreate, SchoolOut, SchoolUpdate
from app.services.audit_service import log_audit

router = APIRouter()


@router.get("/schools", response_model=list[SchoolOut], summary="List schools")
def list_schools(search: Optional[str] = None, limit: int = 200, db: Session = Depends(get_db)):
    q = db.query(School)
    if search:
        q = q.filter(School.name.ilike(f"%{search}%"))
    return q.order_by(School.name).limit(limit).all()


@router.post("/schools", response_model=SchoolOut, status_code=201)
def create_school(body: SchoolCreate, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    school = School(**body.model_dump())
    db.add(school)
    db.flush()
    log_audit(db, "schools", school.id, "CREATE", user_id)
    db.commit()
    db.refresh(school)
    return school


@router.get("/schools/{school_id}", response_model=SchoolOut)
def get_school(school_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, School, school_id, "School")


@router.put("/schools/{school_id}", response_model=SchoolOut)
def update_school(school_id: int, body: SchoolUpdate, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    school = get_or_404(db, School, school_id, "School")
    apply_changes(school, body)
    log_audit(db, "schools", school.id, "UPDATE", user_id)
    db.commit()
    db.refresh(school)
    return school


@router.delete("/schools/{school_id}")
def delete_school(school_id: int, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, School, school_id, "School"))
    log_audit(db, "schools", school_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": school_id}

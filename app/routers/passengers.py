# app/routers/passengers.py
"""Passengers and their parent / guardian contacts."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404
from app.models.passenger import Passenger, ParentContact, PassengerParentContact
from app.schemas.passenger import (
    ParentContactCreate, ParentContactOut, ParentContactUpdate,
    PassengerCreate, PassengerDetail, PassengerOut, PassengerUpdate,
)
from app.services.audit_service import log_audit

router = APIRouter()


def _contacts_for(db: Session, passenger_id: int) -> list[ParentContact]:
    return (
        db.query(ParentContact)
        .join(PassengerParentContact, PassengerParentContact.parent_contact_id == ParentContact.id)
        .filter(PassengerParentContact.passenger_id == passenger_id)
        .order_by(ParentContact.full_name)
        .all()
    )


def _detail(db: Session, passenger: Passenger) -> PassengerDetail:
    out = PassengerDetail.model_validate(passenger)
    out.parent_contacts = [ParentContactOut.model_validate(c) for c in _contacts_for(db, passenger.id)]
    return out


# ── Passengers ───────────────────────────────────────────────────────────────

@router.get("/passengers", response_model=list[PassengerOut], summary="List passengers")
def list_passengers(
    search: Optional[str] = None,
    school_id: Optional[int] = None,
    route_id: Optional[int] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    q = db.query(Passenger)
    if search:
        q = q.filter(Passenger.full_name.ilike(f"%{search}%"))
    if school_id:
        q = q.filter(Passenger.school_id == school_id)
    if route_id:
        q = q.filter(Passenger.route_id == route_id)
    return q.order_by(Passenger.full_name).limit(limit).all()


@router.post("/passengers", response_model=PassengerDetail, status_code=201,
             summary="Create a passenger with new and/or existing parent contacts")
def create_passenger(body: PassengerCreate, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    passenger = Passenger(**body.model_dump(exclude={"parent_contacts", "parent_contact_ids"}))
    db.add(passenger)
    db.flush()
    log_audit(db, "passengers", passenger.id, "CREATE", user_id)

    contact_ids = list(body.parent_contact_ids)
    for contact_in in body.parent_contacts:
        contact = ParentContact(**contact_in.model_dump())
        db.add(contact)
        db.flush()
        log_audit(db, "parent_contacts", contact.id, "CREATE", user_id)
        contact_ids.append(contact.id)

    for contact_id in dict.fromkeys(contact_ids):
        db.add(PassengerParentContact(passenger_id=passenger.id, parent_contact_id=contact_id))

    db.commit()
    db.refresh(passenger)
    return _detail(db, passenger)


@router.get("/passengers/{passenger_id}", response_model=PassengerDetail)
def get_passenger(passenger_id: int, db: Session = Depends(get_db)):
    return _detail(db, get_or_404(db, Passenger, passenger_id, "Passenger"))


@router.put("/passengers/{passenger_id}", response_model=PassengerDetail)
def update_passenger(passenger_id: int, body: PassengerUpdate, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    passenger = get_or_404(db, Passenger, passenger_id, "Passenger")
    apply_changes(passenger, body)
    log_audit(db, "passengers", passenger.id, "UPDATE", user_id)
    db.commit()
    db.refresh(passenger)
    return _detail(db, passenger)


@router.delete("/passengers/{passenger_id}")
def delete_passenger(passenger_id: int, db: Session = Depends(get_db),
                     user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, Passenger, passenger_id, "Passenger"))
    log_audit(db, "passengers", passenger_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": passenger_id}


@router.post("/passengers/{passenger_id}/parent-contacts/{contact_id}", response_model=PassengerDetail,
             summary="Link an existing parent contact")
def link_parent_contact(passenger_id: int, contact_id: int, db: Session = Depends(get_db)):
    passenger = get_or_404(db, Passenger, passenger_id, "Passenger")
    get_or_404(db, ParentContact, contact_id, "Parent contact")
    existing = db.query(PassengerParentContact).filter(
        PassengerParentContact.passenger_id == passenger_id,
        PassengerParentContact.parent_contact_id == contact_id,
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail="Contact already linked to this passenger")
    db.add(PassengerParentContact(passenger_id=passenger_id, parent_contact_id=contact_id))
    db.commit()
    return _detail(db, passenger)


@router.delete("/passengers/{passenger_id}/parent-contacts/{contact_id}", response_model=PassengerDetail)
def unlink_parent_contact(passenger_id: int, contact_id: int, db: Session = Depends(get_db)):
    passenger = get_or_404(db, Passenger, passenger_id, "Passenger")
    link = db.query(PassengerParentContact).filter(
        PassengerParentContact.passenger_id == passenger_id,
        PassengerParentContact.parent_contact_id == contact_id,
    ).first()
    if not link:
        raise HTTPException(status_code=404, detail="Contact is not linked to this passenger")
    db.delete(link)
    db.commit()
    return _detail(db, passenger)


# ── Parent contacts ──────────────────────────────────────────────────────────

@router.get("/parent-contacts", response_model=list[ParentContactOut], summary="List parent contacts")
def list_parent_contacts(search: Optional[str] = None, limit: int = 200, db: Session = Depends(get_db)):
    q = db.query(ParentContact)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(ParentContact.full_name.ilike(pattern),
                         ParentContact.email.ilike(pattern),
                         ParentContact.phone_number.ilike(pattern)))
    return q.order_by(ParentContact.full_name).limit(limit).all()


@router.post("/parent-contacts", response_model=ParentContactOut, status_code=201)
def create_parent_contact(body: ParentContactCreate, db: Session = Depends(get_db),
                          user_id: Optional[int] = Depends(get_acting_user_id)):
    contact = ParentContact(**body.model_dump())
    db.add(contact)
    db.flush()
    log_audit(db, "parent_contacts", contact.id, "CREATE", user_id)
    db.commit()
    db.refresh(contact)
    return contact


@router.get("/parent-contacts/{contact_id}", response_model=ParentContactOut)
def get_parent_contact(contact_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, ParentContact, contact_id, "Parent contact")


@router.put("/parent-contacts/{contact_id}", response_model=ParentContactOut)
def update_parent_contact(contact_id: int, body: ParentContactUpdate, db: Session = Depends(get_db),
                          user_id: Optional[int] = Depends(get_acting_user_id)):
    contact = get_or_404(db, ParentContact, contact_id, "Parent contact")
    apply_changes(contact, body)
    log_audit(db, "parent_contacts", contact.id, "UPDATE", user_id)
    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/parent-contacts/{contact_id}")
def delete_parent_contact(contact_id: int, db: Session = Depends(get_db),
                          user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, ParentContact, contact_id, "Parent contact"))
    log_audit(db, "parent_contacts", contact_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": contact_id}

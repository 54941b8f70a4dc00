# app/services/expiry_service.py
"""
Certificate expiry report.

Every driver, passenger assistant and vehicle carries a fixed set of nullable
expiry-date columns. Each non-null column becomes one ExpiringCertificate row;
rows are then bucketed by whole days remaining:

    expired   days <  0
    14-days   0 <= days <= 14
    30-days   0 <= days <= 30

A certificate expiring today (days == 0) is not expired and sits in both
upcoming windows. Results are sorted ascending by days remaining.
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session, joinedload

from app.config import settings
from app.models.employee import Driver, PassengerAssistant
from app.models.vehicle import Vehicle
from app.utils.logger import get_logger
from app.utils.result import Result, attempt

logger = get_logger(__name__)

EXPIRED = "expired"
PERIODS = (EXPIRED, *settings.EXPIRY_WINDOWS.keys())
ENTITY_TYPES = ("employees", "vehicles")

# (label, column), order is the display order on the report
DRIVER_CERTIFICATES = [
    ("TAS Badge", "tas_badge_expiry_date"),
    ("Taxi Badge", "taxi_badge_expiry_date"),
    ("DBS", "dbs_expiry_date"),
    ("First Aid Certificate", "first_aid_certificate_expiry_date"),
    ("Passport", "passport_expiry_date"),
    ("Driving License", "driving_license_expiry_date"),
    ("CPC", "cpc_expiry_date"),
    ("Vehicle Insurance", "vehicle_insurance_expiry_date"),
    ("MOT", "mot_expiry_date"),
]

ASSISTANT_CERTIFICATES = [
    ("TAS Badge", "tas_badge_expiry_date"),
    ("DBS", "dbs_expiry_date"),
]

VEHICLE_CERTIFICATES = [
    ("Plate Expiry", "plate_expiry_date"),
    ("Insurance", "insurance_expiry_date"),
    ("MOT", "mot_date"),
    ("Tax", "tax_date"),
    ("LOLER", "loler_expiry_date"),
    ("First Aid Kit", "first_aid_expiry"),
    ("Fire Extinguisher", "fire_extinguisher_expiry"),
]


@dataclass
class ExpiringCertificate:
    entity_type: str            # driver | assistant | vehicle
    entity_id: int
    entity_name: str
    entity_identifier: str
    certificate_type: str
    expiry_date: date
    days_remaining: Optional[int] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["severity"] = row_severity(self.days_remaining)
        return data


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def days_remaining(expiry, today: date) -> int:
    """Whole calendar days from today until expiry; negative once expired."""
    return (_as_date(expiry) - today).days


def in_period(days: int, period: str) -> bool:
    if period == EXPIRED:
        return days < 0
    window = settings.EXPIRY_WINDOWS.get(period)
    if window is None:
        raise ValueError(f"Unknown expiry period '{period}'. Expected one of {', '.join(PERIODS)}")
    return 0 <= days <= window


def row_severity(days: Optional[int]) -> Optional[str]:
    if days is None:
        return None
    if days < 0:
        return "expired"
    if days <= 14:
        return "urgent"
    return "warning"


# ── Row extraction ───────────────────────────────────────────────────────────

def _rows(entity_type, entity_id, name, identifier, source, fields) -> list[ExpiringCertificate]:
    rows = []
    for label, column in fields:
        expiry = getattr(source, column, None)
        if not expiry:
            continue
        rows.append(ExpiringCertificate(
            entity_type=entity_type,
            entity_id=entity_id,
            entity_name=name,
            entity_identifier=identifier,
            certificate_type=label,
            expiry_date=_as_date(expiry),
        ))
    return rows


def driver_certificates(driver: Driver) -> list[ExpiringCertificate]:
    name = driver.employee.full_name if driver.employee else "N/A"
    identifier = driver.tas_badge_number or driver.taxi_badge_number or "N/A"
    return _rows("driver", driver.employee_id, name, identifier, driver, DRIVER_CERTIFICATES)


def assistant_certificates(assistant: PassengerAssistant) -> list[ExpiringCertificate]:
    name = assistant.employee.full_name if assistant.employee else "N/A"
    identifier = assistant.tas_badge_number or "N/A"
    return _rows("assistant", assistant.id, name, identifier, assistant, ASSISTANT_CERTIFICATES)


def vehicle_certificates(vehicle: Vehicle) -> list[ExpiringCertificate]:
    name = f"{vehicle.make or ''} {vehicle.model or ''}".strip() or "N/A"
    identifier = vehicle.registration or vehicle.vehicle_identifier or "N/A"
    return _rows("vehicle", vehicle.id, name, identifier, vehicle, VEHICLE_CERTIFICATES)


# ── Classification ───────────────────────────────────────────────────────────

def classify(certificates: Iterable[ExpiringCertificate], period: str,
             today: Optional[date] = None) -> list[ExpiringCertificate]:
    """Rows falling in one window, most overdue / soonest first."""
    today = today or date.today()
    if period not in PERIODS:
        raise ValueError(f"Unknown expiry period '{period}'. Expected one of {', '.join(PERIODS)}")

    selected = []
    for cert in certificates:
        cert.days_remaining = days_remaining(cert.expiry_date, today)
        if in_period(cert.days_remaining, period):
            selected.append(cert)
    selected.sort(key=lambda c: c.days_remaining)
    return selected


def bucket_all(certificates: Iterable[ExpiringCertificate],
               today: Optional[date] = None) -> dict[str, list[ExpiringCertificate]]:
    """Single pass: compute days once per row and drop it into every window it fits."""
    today = today or date.today()
    buckets: dict[str, list[ExpiringCertificate]] = {p: [] for p in PERIODS}
    for cert in certificates:
        cert.days_remaining = days_remaining(cert.expiry_date, today)
        for period in PERIODS:
            if in_period(cert.days_remaining, period):
                buckets[period].append(cert)
    for rows in buckets.values():
        rows.sort(key=lambda c: c.days_remaining)
    return buckets


# ── Database collection ──────────────────────────────────────────────────────

def collect_certificates(db: Session, entity_type: str) -> list[Result]:
    """One Result per underlying query; a failed query does not sink the others."""
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Unknown entity type '{entity_type}'")

    if entity_type == "vehicles":
        return [attempt("vehicles", lambda: [
            row for v in db.query(Vehicle).all() for row in vehicle_certificates(v)
        ], db)]

    return [
        attempt("drivers", lambda: [
            row for d in db.query(Driver).options(joinedload(Driver.employee)).all()
            for row in driver_certificates(d)
        ], db),
        attempt("passenger_assistants", lambda: [
            row for a in db.query(PassengerAssistant).options(joinedload(PassengerAssistant.employee)).all()
            for row in assistant_certificates(a)
        ], db),
    ]


def _gather(db: Session, entity_type: str) -> tuple[list[ExpiringCertificate], list[str]]:
    certificates, errors = [], []
    for result in collect_certificates(db, entity_type):
        if result.ok:
            certificates.extend(result.value)
        else:
            errors.append(result.error)
    return certificates, errors


def get_expiring_certificates(db: Session, period: str, entity_type: str = "employees",
                              today: Optional[date] = None):
    """Returns (rows, errors). Query failures are reported in errors, never raised."""
    certificates, errors = _gather(db, entity_type)
    rows = classify(certificates, period, today)
    logger.info(f"[EXPIRY] {entity_type}/{period}: {len(rows)} certificates ({len(errors)} query errors)")
    return rows, errors


def get_expiry_summary(db: Session, entity_type: str = "employees", today: Optional[date] = None):
    """Returns ({period: count}, errors) using one pass over the rows."""
    certificates, errors = _gather(db, entity_type)
    buckets = bucket_all(certificates, today)
    return {period: len(rows) for period, rows in buckets.items()}, errors

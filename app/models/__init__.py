# Fleet Operations: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.user import User                                   # noqa
from app.models.employee import Employee, Driver, PassengerAssistant  # noqa
from app.models.school import School                               # noqa
from app.models.vehicle import Vehicle, VehicleUpdate               # noqa
from app.models.passenger import Passenger, ParentContact, PassengerParentContact  # noqa
from app.models.route import Route, RoutePoint, RouteSession, route_assistants  # noqa
from app.models.breakdown import VehicleBreakdown                   # noqa
from app.models.call_log import CallLog                             # noqa
from app.models.incident import Incident                            # noqa
from app.models.notification import Notification, SystemActivity   # noqa
from app.models.email_summary import EmailSummary                   # noqa
from app.models.document import (                                  # noqa
    Document, DocumentRequirement, SubjectDocument, DocumentSubjectDocumentLink,
)
from app.models.audit_log import AuditLog                           # noqa

from nexus.models.organization import Organization, OrganizationRef
from nexus.models.user import User
from nexus.models.event import Event
from nexus.models.registration import Registration
from nexus.models.participant import Attendance, Participant
from nexus.models.notification import NotificationOutbox
from nexus.models.enums import (
    AttendanceAction,
    AttendanceStatus,
    EventType,
    NotificationKind,
    NotificationStatus,
    RegistrationStatus,
    UserRole,
)

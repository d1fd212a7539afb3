from enum import Enum


class UserRole(Enum):
    USER = "user"
    STAFF = "staff"
    COORDINATOR = "coordinator"
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


# Roles that help run events for their own organization.
ORGANIZER_ROLES = (UserRole.STAFF, UserRole.COORDINATOR, UserRole.ADMIN)


class RegistrationStatus(Enum):
    REGISTERED = "registered"
    # Reserved; no flow produces these yet.
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"


class AttendanceStatus(Enum):
    UNMARKED = "unmarked"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    ABSENT = "absent"


class AttendanceAction(Enum):
    MARK_PRESENT = "mark-present"
    REQUEST_CONFIRMATION = "request-confirmation"
    CONFIRM_ATTENDANCE = "confirm-attendance"
    MARK_ABSENT = "mark-absent"


class EventType(Enum):
    WORKSHOP = "Workshop"
    SEMINAR = "Seminar"
    COMPETITION = "Competition"
    CULTURAL = "Cultural"


class NotificationKind(Enum):
    REGISTRATION_CONFIRMATION = "registration_confirmation"
    CERTIFICATE = "certificate"


class NotificationStatus(Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"

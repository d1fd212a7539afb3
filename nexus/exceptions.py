class ServiceError(Exception):
    """Base class for failures surfaced to API callers.

    Every subclass carries a stable ``code`` and the HTTP status the
    routes answer with. Services raise these before mutating anything,
    so a caller can always resubmit a corrected request.
    """

    code = "Error"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"success": False, "error": self.message, "code": self.code}


class UnauthorizedError(ServiceError):
    code = "Unauthorized"
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(ServiceError):
    code = "Forbidden"
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(ServiceError):
    code = "NotFound"
    status_code = 404
    default_message = "Not found"


class EventNotFoundError(NotFoundError):
    code = "EventNotFound"
    default_message = "Event not found"


class RegistrationNotFoundError(NotFoundError):
    code = "RegistrationNotFound"
    default_message = "Registration not found"


class ParticipantNotFoundError(NotFoundError):
    code = "ParticipantNotFound"
    default_message = "Participant not found"


class UserNotFoundError(NotFoundError):
    code = "UserNotFound"
    default_message = "User not found"


class EventClosedError(ServiceError):
    code = "EventClosed"
    default_message = "Event has already been completed"


class SelfRegistrationForbiddenError(ServiceError):
    code = "SelfRegistrationForbidden"
    status_code = 403
    default_message = "Organizers cannot register for events from their own organization"


class AlreadyRegisteredError(ServiceError):
    code = "AlreadyRegistered"
    status_code = 409
    default_message = "You have already registered for this event"


class TeamSizeOutOfRangeError(ServiceError):
    code = "TeamSizeOutOfRange"

    def __init__(self, min_size, max_size):
        super().__init__(f"Team size must be between {min_size} and {max_size}")
        self.min_size = min_size
        self.max_size = max_size


class UnexpectedParticipantsError(ServiceError):
    code = "UnexpectedParticipants"
    default_message = "Solo registrations cannot include additional participants"


class IncompleteParticipantDetailsError(ServiceError):
    code = "IncompleteParticipantDetails"
    default_message = "Please provide a name and email for every team member"


class InvalidParticipantEmailError(ServiceError):
    code = "InvalidParticipantEmail"

    def __init__(self, email):
        super().__init__(f"Invalid participant email: {email}")
        self.email = email


class DuplicateParticipantEmailError(ServiceError):
    code = "DuplicateParticipantEmail"

    def __init__(self, email):
        super().__init__(f"Each participant must have a unique email ({email} is repeated)")
        self.email = email


class InvalidStateTransitionError(ServiceError):
    code = "InvalidStateTransition"
    default_message = "Attendance is not pending confirmation"


class ValidationError(ServiceError):
    code = "InvalidRequest"
    default_message = "Invalid request"


class MissingFieldsError(ValidationError):
    code = "MissingFields"

    def __init__(self, fields):
        super().__init__("Missing required fields")
        self.fields = fields

    def to_dict(self):
        body = super().to_dict()
        body["missing_fields"] = self.fields
        return body


class NotificationDeliveryFailed(Exception):
    """Raised by the mail gateway. Never reaches an API caller."""
    pass

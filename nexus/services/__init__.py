from nexus.services.user_service import UserService
from nexus.services.organization_service import OrganizationService
from nexus.services.event_service import EventService
from nexus.services.registration_service import RegistrationService
from nexus.services.attendance_service import AttendanceService
from nexus.services.notification_service import NotificationService, NotificationDispatcher
from nexus.services.health_service import HealthService

from nexus.repositories.user_repository import UserRepository
from nexus.repositories.organization_repository import OrganizationRepository
from nexus.repositories.event_repository import EventRepository
from nexus.repositories.registration_repository import RegistrationRepository
from nexus.repositories.notification_repository import NotificationRepository

"""Who may see and change what, per event.

Every "same organization" check goes through ``OrganizationRef.matches``,
which fails closed when either side has no organization.
"""
from nexus.identity import Actor
from nexus.models import Event, UserRole
from nexus.models.enums import ORGANIZER_ROLES


def _same_organization(actor: Actor, event: Event) -> bool:
    return actor.organization.matches(event.organization_ref)


def is_event_organizer(actor: Actor, event: Event) -> bool:
    return event.organizer_id is not None and actor.id == event.organizer_id


def can_view_roster(actor: Actor, event: Event) -> bool:
    if is_event_organizer(actor, event):
        return True
    if actor.role == UserRole.SUPER_ADMIN:
        return True
    return _same_organization(actor, event) and actor.role in ORGANIZER_ROLES


def can_mark_attendance(actor: Actor, event: Event) -> bool:
    # Stricter than roster visibility: being the organizer alone is not enough.
    if actor.role == UserRole.SUPER_ADMIN:
        return True
    return _same_organization(actor, event) and actor.role in ORGANIZER_ROLES


def can_confirm_attendance(actor: Actor, event: Event) -> bool:
    if actor.role == UserRole.SUPER_ADMIN:
        return True
    return _same_organization(actor, event) and actor.role == UserRole.ADMIN


def is_self_registration_forbidden(actor: Actor, event: Event) -> bool:
    """Staff of the organization running the event may not sign up for it.

    Super-admins belong to the platform rather than an organization and
    are exempt.
    """
    if actor.role == UserRole.SUPER_ADMIN:
        return False
    return actor.role in ORGANIZER_ROLES and _same_organization(actor, event)


def can_manage_event(actor: Actor, event: Event) -> bool:
    if actor.role == UserRole.SUPER_ADMIN or is_event_organizer(actor, event):
        return True
    return _same_organization(actor, event) and actor.role in (
        UserRole.ADMIN,
        UserRole.COORDINATOR,
    )

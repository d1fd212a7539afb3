from typing import List, Optional
from nexus.extensions import db
from nexus.models import NotificationOutbox
from nexus.models.enums import NotificationKind, NotificationStatus


class NotificationRepository:
    @staticmethod
    def add(attrs) -> NotificationOutbox:
        """Stage an outbox row in the current session without committing."""
        entry = NotificationOutbox(**attrs)
        db.session.add(entry)
        return entry

    @staticmethod
    def get(entry_id: int) -> Optional[NotificationOutbox]:
        return db.session.get(NotificationOutbox, entry_id)

    @staticmethod
    def pending_ids(limit: int = 50) -> List[int]:
        rows = (
            db.session.query(NotificationOutbox.id)
            .filter(NotificationOutbox.status == NotificationStatus.PENDING.value)
            .order_by(NotificationOutbox.id.asc())
            .limit(limit)
            .all()
        )
        return [row.id for row in rows]

    @staticmethod
    def has_pending_certificate(registration_id: int, recipient: str) -> bool:
        return (
            NotificationOutbox.query.filter_by(
                kind=NotificationKind.CERTIFICATE.value,
                registration_id=registration_id,
                recipient=recipient,
                status=NotificationStatus.PENDING.value,
            ).first()
            is not None
        )

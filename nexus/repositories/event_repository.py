from typing import List, Optional
from nexus.extensions import db
from nexus.models import Event


class EventRepository:
    @staticmethod
    def get_events() -> List[Event]:
        return Event.query.order_by(Event.date.asc()).all()

    @staticmethod
    def get_event(event_id: int) -> Optional[Event]:
        return db.session.get(Event, event_id)

    @staticmethod
    def create_event(attrs) -> Event:
        event = Event(**attrs)
        db.session.add(event)
        db.session.commit()
        return event

    @staticmethod
    def mark_completed(events: List[Event]) -> None:
        """Persist the completed flag for events whose date has passed."""
        for event in events:
            event.completed = True
        db.session.commit()

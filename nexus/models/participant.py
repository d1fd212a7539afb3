"""Participants embedded in a registration.

Both types are immutable. Attendance changes produce a new ``Participant``
and the registration's participant list is replaced as a whole, which is
what the JSON column needs to notice the change.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from nexus.utils.dates import isoformat, parse_iso
from .enums import AttendanceStatus


def _load_dt(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return parse_iso(value)


@dataclass(frozen=True)
class Attendance:
    status: AttendanceStatus = AttendanceStatus.UNMARKED
    marked_by: Optional[int] = None
    marked_at: Optional[datetime] = None
    confirmed_by: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    confirmation_notes: Optional[str] = None
    certificate_sent_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data) -> "Attendance":
        data = data or {}
        try:
            status = AttendanceStatus(data.get("status") or AttendanceStatus.UNMARKED.value)
        except ValueError:
            status = AttendanceStatus.UNMARKED
        return cls(
            status=status,
            marked_by=data.get("marked_by"),
            marked_at=_load_dt(data.get("marked_at")),
            confirmed_by=data.get("confirmed_by"),
            confirmed_at=_load_dt(data.get("confirmed_at")),
            confirmation_notes=data.get("confirmation_notes"),
            certificate_sent_at=_load_dt(data.get("certificate_sent_at")),
        )

    def to_dict(self):
        return {
            "status": self.status.value,
            "marked_by": self.marked_by,
            "marked_at": isoformat(self.marked_at),
            "confirmed_by": self.confirmed_by,
            "confirmed_at": isoformat(self.confirmed_at),
            "confirmation_notes": self.confirmation_notes,
            "certificate_sent_at": isoformat(self.certificate_sent_at),
        }


@dataclass(frozen=True)
class Participant:
    name: str
    email: str
    is_primary: bool = False
    attendance: Attendance = field(default_factory=Attendance)

    @classmethod
    def from_dict(cls, data) -> "Participant":
        return cls(
            name=data.get("name", ""),
            email=data.get("email", ""),
            is_primary=bool(data.get("is_primary", False)),
            attendance=Attendance.from_dict(data.get("attendance")),
        )

    def with_attendance(self, **changes) -> "Participant":
        return replace(self, attendance=replace(self.attendance, **changes))

    def to_dict(self):
        return {
            "name": self.name,
            "email": self.email,
            "is_primary": self.is_primary,
            "attendance": self.attendance.to_dict(),
        }

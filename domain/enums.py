"""Domain Enums"""
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    FRONTDESK = "frontdesk"
    GUEST = "guest"


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


STAFF_ROLES = frozenset({Role.ADMIN, Role.FRONTDESK})

# Statuses that occupy a room on the availability calendar
OCCUPYING_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.PENDING)


def has_staff_privilege(role: Role) -> bool:
    """Admins and front-desk staff manage reservations on behalf of guests"""
    return Role(role) in STAFF_ROLES

"""Domain Entities - Aggregates"""
from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from domain.enums import ReservationStatus
from domain.value_objects import DateRange, calculate_total_price


class Room(BaseModel):
    """Room in the hotel catalog"""
    id: Optional[int] = None
    number: str
    room_type: str
    nightly_price: Decimal
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    available: bool = True

    class Config:
        from_attributes = True


class Reservation(BaseModel):
    """Reservation Aggregate Root Entity"""

    id: Optional[int] = None
    room_id: int
    guest_user_id: int
    created_by_user_id: int
    start_date: date
    end_date: date
    status: ReservationStatus = ReservationStatus.CONFIRMED
    total_price: Decimal

    class Config:
        from_attributes = True

    # ==================== FACTORY METHOD ====================
    @staticmethod
    def create(
        room: Room,
        date_range: DateRange,
        guest_user_id: int,
        created_by_user_id: int,
    ) -> "Reservation":
        """New bookings are confirmed immediately"""
        return Reservation(
            room_id=room.id,
            guest_user_id=guest_user_id,
            created_by_user_id=created_by_user_id,
            start_date=date_range.start_date,
            end_date=date_range.end_date,
            status=ReservationStatus.CONFIRMED,
            total_price=calculate_total_price(room.nightly_price, date_range),
        )

    # ==================== MODIFICATION METHODS ====================
    def reschedule(self, room: Room, date_range: DateRange, status: ReservationStatus) -> "Reservation":
        """Return a copy moved to ``room``/``date_range`` with a recomputed price"""
        return self.model_copy(update={
            "room_id": room.id,
            "start_date": date_range.start_date,
            "end_date": date_range.end_date,
            "status": ReservationStatus(status),
            "total_price": calculate_total_price(room.nightly_price, date_range),
        })

    # ==================== QUERY METHODS ====================
    @property
    def date_range(self) -> DateRange:
        return DateRange(start_date=self.start_date, end_date=self.end_date)

    def nights(self) -> int:
        return self.date_range.nights()

    def overlaps(self, date_range: DateRange) -> bool:
        return self.date_range.overlaps(date_range.start_date, date_range.end_date)

    def is_owned_by(self, user_id: int) -> bool:
        return self.guest_user_id == user_id


class ReservationDetails(Reservation):
    """Reservation joined with its guest, room and creator"""
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    room_number: Optional[str] = None
    created_by_name: Optional[str] = None
    created_by_email: Optional[str] = None


class OccupiedRange(BaseModel):
    """Calendar entry for a room's availability view"""
    id: int
    start_date: date
    end_date: date
    status: ReservationStatus

    class Config:
        from_attributes = True

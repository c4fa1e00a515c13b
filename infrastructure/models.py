from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String, Text, func,
)

from domain.enums import ReservationStatus, Role
from infrastructure.database import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=False)
    name = Column(String, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, default=Role.GUEST.value, nullable=False)


class RoomModel(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, autoincrement=True)
    number = Column(String, unique=True, nullable=False)
    room_type = Column(String, nullable=False)
    nightly_price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text)
    features = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)
    available = Column(Boolean, default=True, nullable=False)


class ReservationModel(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    room_id = Column(ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False)
    guest_user_id = Column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_by_user_id = Column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String, default=ReservationStatus.CONFIRMED.value, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        # overlap checks and availability calendars scan by room and status
        Index("idx_reservations_room_status", room_id, status),
    )

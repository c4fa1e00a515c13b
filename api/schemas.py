"""API Schemas - Request and Response DTOs"""
from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List, Optional

from domain.enums import ReservationStatus, Role


# ============================================================================
# RESERVATION SCHEMAS
# ============================================================================

class CreateReservationRequest(BaseModel):
    """Create reservation request DTO

    Dates travel as ``YYYY-MM-DD`` strings and are validated by the ledger.
    ``guest_user_id`` is honoured only for staff callers.
    """
    room_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    guest_user_id: Optional[int] = None


class UpdateReservationRequest(BaseModel):
    """Update reservation request DTO"""
    room_id: Optional[int] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: Optional[str] = None


class ReservationResponse(BaseModel):
    """Reservation response DTO"""
    id: int
    room_id: int
    guest_user_id: int
    created_by_user_id: int
    start_date: date
    end_date: date
    status: ReservationStatus
    total_price: Decimal
    nights: int


class ReservationDetailsResponse(ReservationResponse):
    """Reservation with guest, room and creator details"""
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    room_number: Optional[str] = None
    created_by_name: Optional[str] = None
    created_by_email: Optional[str] = None


class OccupiedRangeResponse(BaseModel):
    id: int
    start_date: date
    end_date: date
    status: ReservationStatus


# ============================================================================
# ROOM SCHEMAS
# ============================================================================

class CreateRoomRequest(BaseModel):
    """Create room request DTO"""
    number: Optional[str] = None
    room_type: Optional[str] = None
    nightly_price: Optional[Decimal] = None
    description: Optional[str] = None
    features: List[str] = []
    images: List[str] = []
    available: bool = True


class UpdateRoomRequest(BaseModel):
    """Update room request DTO"""
    number: Optional[str] = None
    room_type: Optional[str] = None
    nightly_price: Optional[Decimal] = None
    available: Optional[bool] = None
    description: Optional[str] = None
    features: Optional[List[str]] = None
    images: Optional[List[str]] = None


class RoomResponse(BaseModel):
    """Room response DTO"""
    id: int
    number: str
    room_type: str
    nightly_price: Decimal
    description: Optional[str] = None
    features: List[str]
    images: List[str]
    available: bool


# ============================================================================
# AUTH & USER SCHEMAS
# ============================================================================

class RegisterRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateUserRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    password: Optional[str] = None


class Token(BaseModel):
    """Token response DTO"""
    access_token: str
    token_type: str


class UserResponse(BaseModel):
    """User response DTO"""
    id: int
    email: str
    phone: str
    name: str
    role: Role


class LoginResponse(Token):
    user: UserResponse


class MessageResponse(BaseModel):
    message: str

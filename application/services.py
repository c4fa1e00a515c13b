"""Application Services - Business use cases"""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional, Union

from application.locks import RoomLocks
from domain.auth import Principal, User, UserInDB
from domain.entities import Room, Reservation, ReservationDetails, OccupiedRange
from domain.enums import Role, ReservationStatus
from domain.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError,
)
from domain.repositories import ReservationRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange, ReservationFilter, days_until, today_utc
from infrastructure.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

DEFAULT_LEAD_TIME_DAYS = 7

DateInput = Union[str, date, None]


def _require(value, field: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", {"field": field})
    return value


def _parse_status(value) -> ReservationStatus:
    _require(value, "status")
    try:
        return ReservationStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ReservationStatus)
        raise ValidationError(f"status must be one of: {allowed}", {"field": "status", "value": value})


def _parse_role(value) -> Role:
    _require(value, "role")
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise ValidationError(f"role must be one of: {allowed}", {"field": "role", "value": value})


def _parse_price(value) -> Decimal:
    _require(value, "nightly_price")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("nightly_price must be a number", {"field": "nightly_price"})
    if not price.is_finite() or price <= 0:
        raise ValidationError("nightly_price must be greater than zero", {"field": "nightly_price"})
    # stored as NUMERIC(10, 2)
    if price != price.quantize(Decimal("0.01")):
        raise ValidationError(
            "nightly_price cannot have more than 2 decimal places", {"field": "nightly_price"}
        )
    return price


def _require_admin(requesting_user: Principal, action: str) -> None:
    if not requesting_user.is_admin:
        raise AuthorizationError(f"Only administrators can {action}")


def _public(user: UserInDB) -> User:
    return User(**user.model_dump(exclude={"hashed_password"}))


class ReservationService:
    """Reservation Ledger: booking, listing, editing and cancelling stays"""

    def __init__(self,
                 repository: ReservationRepository,
                 room_repo: RoomRepository,
                 user_repo: Optional[UserRepository] = None,
                 locks: Optional[RoomLocks] = None,
                 lead_time_days: int = DEFAULT_LEAD_TIME_DAYS,
                 today: Callable[[], date] = today_utc):
        self.repository = repository
        self.room_repo = room_repo
        self.user_repo = user_repo
        self.locks = locks or RoomLocks()
        self.lead_time_days = lead_time_days
        self._today = today

    async def _resolve_guest(self, requesting_user: Principal, guest_user_id: Optional[int]) -> int:
        """Staff may book for another guest; everybody else books for themselves"""
        if guest_user_id is None or not requesting_user.is_staff:
            return requesting_user.id
        if guest_user_id != requesting_user.id and self.user_repo is not None:
            if await self.user_repo.find_by_id(guest_user_id) is None:
                raise NotFoundError("Guest user not found", {"guest_user_id": guest_user_id})
        return guest_user_id

    async def create_reservation(
        self,
        room_id: Optional[int],
        start_date: DateInput,
        end_date: DateInput,
        requesting_user: Principal,
        guest_user_id: Optional[int] = None,
    ) -> Reservation:
        """Book a room; the new reservation is confirmed immediately"""
        _require(room_id, "room_id")
        date_range = DateRange.parse(start_date, end_date)

        room = await self.room_repo.find_by_id(room_id)
        if room is None or not room.available:
            raise NotFoundError("Room not available", {"room_id": room_id})

        guest_id = await self._resolve_guest(requesting_user, guest_user_id)

        async with self.locks.for_room(room.id):
            conflict = await self.repository.find_conflict(room.id, date_range)
            if conflict is not None:
                logger.warning(
                    "Booking for room %s %s..%s rejected, overlaps reservation %s",
                    room.id, date_range.start_date, date_range.end_date, conflict.id,
                )
                raise ConflictError(
                    "Room is already booked for the requested dates",
                    conflicting_reservation_id=conflict.id,
                )
            reservation = Reservation.create(
                room=room,
                date_range=date_range,
                guest_user_id=guest_id,
                created_by_user_id=requesting_user.id,
            )
            saved = await self.repository.save(reservation)

        logger.info(
            "Reservation %s created: room %s, guest %s, %s nights, total %s",
            saved.id, saved.room_id, saved.guest_user_id, saved.nights(), saved.total_price,
        )
        return saved

    async def list_my_reservations(self, user_id: int) -> List[Reservation]:
        """Reservations where the user is the guest, latest stay first"""
        return await self.repository.find_by_guest_id(user_id)

    async def list_all_reservations(
        self,
        requesting_user: Principal,
        filters: Optional[ReservationFilter] = None,
    ) -> List[ReservationDetails]:
        if not requesting_user.is_staff:
            raise AuthorizationError("Only staff can list all reservations")
        return await self.repository.find_all(filters or ReservationFilter())

    async def check_availability(self, room_id: int) -> List[OccupiedRange]:
        """Occupied date ranges of a room, earliest first"""
        return await self.repository.find_occupied(room_id)

    async def update_reservation(
        self,
        reservation_id: int,
        room_id: Optional[int],
        start_date: DateInput,
        end_date: DateInput,
        status: Union[ReservationStatus, str, None],
        requesting_user: Principal,
    ) -> Reservation:
        """Staff edit of room, dates and status; price is recomputed"""
        if not requesting_user.is_staff:
            raise AuthorizationError("Only staff can edit reservations")
        _require(room_id, "room_id")
        date_range = DateRange.parse(start_date, end_date)
        new_status = _parse_status(status)

        room = await self.room_repo.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room not found", {"room_id": room_id})

        async with self.locks.for_room(room.id):
            existing = await self.repository.find_by_id(reservation_id)
            if existing is None:
                raise NotFoundError("Reservation not found", {"reservation_id": reservation_id})

            conflict = await self.repository.find_conflict(room.id, date_range, exclude_id=reservation_id)
            if conflict is not None:
                logger.warning(
                    "Update of reservation %s rejected, overlaps reservation %s in room %s",
                    reservation_id, conflict.id, room.id,
                )
                raise ConflictError(
                    "Room is already booked for the requested dates",
                    conflicting_reservation_id=conflict.id,
                )
            updated = await self.repository.update(existing.reschedule(room, date_range, new_status))

        logger.info(
            "Reservation %s updated by user %s: room %s, %s..%s, %s, total %s",
            updated.id, requesting_user.id, updated.room_id, updated.start_date,
            updated.end_date, updated.status.value, updated.total_price,
        )
        return updated

    async def delete_reservation(self, reservation_id: int, requesting_user: Principal) -> None:
        """Remove a reservation; guests must respect the cancellation lead time"""
        reservation = await self.repository.find_by_id(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found", {"reservation_id": reservation_id})

        if not requesting_user.is_staff:
            if not reservation.is_owned_by(requesting_user.id):
                raise AuthorizationError("You can only cancel your own reservations")
            remaining = days_until(reservation.start_date, self._today())
            if remaining < self.lead_time_days:
                logger.warning(
                    "Guest %s cancellation of reservation %s refused, %s days before check-in",
                    requesting_user.id, reservation_id, remaining,
                )
                raise AuthorizationError(
                    f"Reservations can only be cancelled at least {self.lead_time_days} days "
                    f"before check-in; {remaining} days remain",
                    {"days_remaining": remaining, "lead_time_days": self.lead_time_days},
                )

        if not await self.repository.delete(reservation_id):
            raise NotFoundError("Reservation not found", {"reservation_id": reservation_id})
        logger.info("Reservation %s deleted by user %s", reservation_id, requesting_user.id)


class RoomService:
    """Service for the Room Catalog"""

    def __init__(self, repository: RoomRepository, reservation_repo: ReservationRepository):
        self.repository = repository
        self.reservation_repo = reservation_repo

    async def list_rooms(self, available: Optional[bool] = None) -> List[Room]:
        return await self.repository.find_all(available)

    async def get_room(self, room_id: int) -> Room:
        room = await self.repository.find_by_id(room_id)
        if room is None:
            raise NotFoundError("Room not found", {"room_id": room_id})
        return room

    async def _ensure_number_free(self, number: str, room_id: Optional[int] = None) -> None:
        other = await self.repository.find_by_number(number)
        if other is not None and other.id != room_id:
            raise ConflictError(f"Room number {number} already exists", details={"room_id": other.id})

    async def create_room(
        self,
        requesting_user: Principal,
        number: Optional[str],
        room_type: Optional[str],
        nightly_price,
        description: Optional[str] = None,
        features: Optional[List[str]] = None,
        images: Optional[List[str]] = None,
        available: bool = True,
    ) -> Room:
        _require_admin(requesting_user, "create rooms")
        room = Room(
            number=_require(number, "number"),
            room_type=_require(room_type, "room_type"),
            nightly_price=_parse_price(nightly_price),
            description=description,
            features=features or [],
            images=images or [],
            available=available,
        )
        await self._ensure_number_free(room.number)
        saved = await self.repository.save(room)
        logger.info("Room %s (%s) created", saved.id, saved.number)
        return saved

    async def update_room(
        self,
        room_id: int,
        requesting_user: Principal,
        number: Optional[str],
        room_type: Optional[str],
        nightly_price,
        available: Optional[bool],
        description: Optional[str] = None,
        features: Optional[List[str]] = None,
        images: Optional[List[str]] = None,
    ) -> Room:
        _require_admin(requesting_user, "edit rooms")
        _require(available, "available")
        existing = await self.get_room(room_id)
        updated = existing.model_copy(update={
            "number": _require(number, "number"),
            "room_type": _require(room_type, "room_type"),
            "nightly_price": _parse_price(nightly_price),
            "available": bool(available),
            "description": description if description is not None else existing.description,
            "features": features if features is not None else existing.features,
            "images": images if images is not None else existing.images,
        })
        await self._ensure_number_free(updated.number, room_id)
        saved = await self.repository.update(updated)
        logger.info("Room %s updated", room_id)
        return saved

    async def delete_room(self, room_id: int, requesting_user: Principal) -> None:
        _require_admin(requesting_user, "delete rooms")
        await self.get_room(room_id)
        if await self.reservation_repo.exists_for_room(room_id):
            raise ConflictError(
                "Room has reservations; delete them first", details={"room_id": room_id}
            )
        await self.repository.delete(room_id)
        logger.info("Room %s deleted", room_id)


class UserService:
    """Service for user accounts and credentials"""

    def __init__(self, repository: UserRepository, reservation_repo: Optional[ReservationRepository] = None):
        self.repository = repository
        self.reservation_repo = reservation_repo

    async def register(
        self,
        email: Optional[str],
        phone: Optional[str],
        name: Optional[str],
        password: Optional[str],
        role: Role = Role.GUEST,
    ) -> User:
        for value, field in ((email, "email"), (phone, "phone"), (name, "name"), (password, "password")):
            _require(value, field)
        if await self.repository.find_by_email(email) is not None:
            raise ConflictError("Email already registered")
        user = await self.repository.save(UserInDB(
            email=email,
            phone=phone,
            name=name,
            role=role,
            hashed_password=get_password_hash(password),
        ))
        logger.info("User %s registered with role %s", user.id, user.role.value)
        return _public(user)

    async def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        _require(email, "email")
        _require(password, "password")
        user = await self.repository.find_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Incorrect email or password")
        return _public(user)

    async def get_user(self, user_id: int) -> User:
        user = await self.repository.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found", {"user_id": user_id})
        return _public(user)

    async def list_users(self, requesting_user: Principal) -> List[User]:
        _require_admin(requesting_user, "list users")
        return [_public(user) for user in await self.repository.find_all()]

    async def get_user_as_admin(self, user_id: int, requesting_user: Principal) -> User:
        _require_admin(requesting_user, "view users")
        return await self.get_user(user_id)

    async def update_user(
        self,
        user_id: int,
        requesting_user: Principal,
        email: Optional[str],
        phone: Optional[str],
        name: Optional[str],
        role,
        password: Optional[str] = None,
    ) -> User:
        _require_admin(requesting_user, "edit users")
        for value, field in ((email, "email"), (phone, "phone"), (name, "name")):
            _require(value, field)
        new_role = _parse_role(role)
        if user_id == requesting_user.id and new_role != Role.ADMIN:
            raise AuthorizationError("You cannot remove the administrator role from your own account")

        existing = await self.repository.find_by_id(user_id)
        if existing is None:
            raise NotFoundError("User not found", {"user_id": user_id})
        other = await self.repository.find_by_email(email)
        if other is not None and other.id != user_id:
            raise ConflictError("Email already registered")

        changes = {"email": email, "phone": phone, "name": name, "role": new_role}
        if password:
            changes["hashed_password"] = get_password_hash(password)
        updated = await self.repository.update(existing.model_copy(update=changes))
        logger.info("User %s updated by admin %s", user_id, requesting_user.id)
        return _public(updated)

    async def delete_user(self, user_id: int, requesting_user: Principal) -> None:
        _require_admin(requesting_user, "delete users")
        if user_id == requesting_user.id:
            raise AuthorizationError("You cannot delete your own administrator account")
        await self.get_user(user_id)
        if self.reservation_repo is not None and await self.reservation_repo.exists_for_user(user_id):
            raise ConflictError(
                "User has reservations; delete them first", details={"user_id": user_id}
            )
        await self.repository.delete(user_id)
        logger.info("User %s deleted by admin %s", user_id, requesting_user.id)

    async def ensure_admin(self, email: str, password: str, name: str, phone: str) -> Optional[User]:
        """Seed the first administrator when none exists"""
        if await self.repository.count_by_role(Role.ADMIN) > 0:
            return None
        if await self.repository.find_by_email(email) is not None:
            logger.warning("Cannot seed administrator: %s is already registered", email)
            return None
        admin = await self.register(email, phone, name, password, role=Role.ADMIN)
        logger.info("Initial administrator %s created", email)
        return admin

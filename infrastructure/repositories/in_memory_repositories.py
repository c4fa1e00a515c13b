"""In-Memory Repository Implementations"""
from itertools import count
from typing import Optional, List, Dict

from domain.auth import UserInDB
from domain.entities import Room, Reservation, ReservationDetails, OccupiedRange
from domain.enums import Role, ReservationStatus, OCCUPYING_STATUSES
from domain.exceptions import NotFoundError
from domain.repositories import ReservationRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange, ReservationFilter


def _newest_first(reservation: Reservation):
    return (reservation.start_date, reservation.id)


class InMemoryUserRepository(UserRepository):
    """In-memory implementation of UserRepository"""

    def __init__(self):
        self._storage: Dict[int, UserInDB] = {}
        self._ids = count(1)

    async def save(self, user: UserInDB) -> UserInDB:
        stored = user.model_copy(update={"id": next(self._ids)})
        self._storage[stored.id] = stored
        return stored.model_copy()

    async def find_by_id(self, user_id: int) -> Optional[UserInDB]:
        user = self._storage.get(user_id)
        return user.model_copy() if user else None

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        for user in self._storage.values():
            if user.email == email:
                return user.model_copy()
        return None

    async def find_all(self) -> List[UserInDB]:
        return [user.model_copy() for user in self._storage.values()]

    async def count_by_role(self, role: Role) -> int:
        return sum(1 for user in self._storage.values() if user.role == role)

    async def update(self, user: UserInDB) -> UserInDB:
        if user.id in self._storage:
            self._storage[user.id] = user.model_copy()
            return user
        raise NotFoundError("User not found")

    async def delete(self, user_id: int) -> bool:
        if user_id in self._storage:
            del self._storage[user_id]
            return True
        return False


class InMemoryRoomRepository(RoomRepository):
    """In-memory implementation of RoomRepository"""

    def __init__(self):
        self._storage: Dict[int, Room] = {}
        self._ids = count(1)

    async def save(self, room: Room) -> Room:
        stored = room.model_copy(update={"id": next(self._ids)})
        self._storage[stored.id] = stored
        return stored.model_copy()

    async def find_by_id(self, room_id: int) -> Optional[Room]:
        room = self._storage.get(room_id)
        return room.model_copy() if room else None

    async def find_by_number(self, number: str) -> Optional[Room]:
        for room in self._storage.values():
            if room.number == number:
                return room.model_copy()
        return None

    async def find_all(self, available: Optional[bool] = None) -> List[Room]:
        return [
            room.model_copy() for room in self._storage.values()
            if available is None or room.available == available
        ]

    async def update(self, room: Room) -> Room:
        if room.id in self._storage:
            self._storage[room.id] = room.model_copy()
            return room
        raise NotFoundError("Room not found")

    async def delete(self, room_id: int) -> bool:
        if room_id in self._storage:
            del self._storage[room_id]
            return True
        return False


class InMemoryReservationRepository(ReservationRepository):
    """In-memory implementation of ReservationRepository

    ``users`` and ``rooms`` are consulted to enrich the staff listing the way
    the SQL implementation joins them.
    """

    def __init__(self, users: Optional[UserRepository] = None, rooms: Optional[RoomRepository] = None):
        self._storage: Dict[int, Reservation] = {}
        self._ids = count(1)
        self._users = users
        self._rooms = rooms

    async def save(self, reservation: Reservation) -> Reservation:
        stored = reservation.model_copy(update={"id": next(self._ids)})
        self._storage[stored.id] = stored
        return stored.model_copy()

    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        reservation = self._storage.get(reservation_id)
        return reservation.model_copy() if reservation else None

    async def find_by_guest_id(self, guest_user_id: int) -> List[Reservation]:
        found = [r for r in self._storage.values() if r.guest_user_id == guest_user_id]
        return [r.model_copy() for r in sorted(found, key=_newest_first, reverse=True)]

    async def find_all(self, filters: ReservationFilter) -> List[ReservationDetails]:
        found = [
            r for r in self._storage.values()
            if (filters.guest_user_id is None or r.guest_user_id == filters.guest_user_id)
            and (filters.room_id is None or r.room_id == filters.room_id)
        ]
        return [await self._enrich(r) for r in sorted(found, key=_newest_first, reverse=True)]

    async def _enrich(self, reservation: Reservation) -> ReservationDetails:
        details = ReservationDetails(**reservation.model_dump())
        if self._users is not None:
            guest = await self._users.find_by_id(reservation.guest_user_id)
            creator = await self._users.find_by_id(reservation.created_by_user_id)
            if guest:
                details.guest_name, details.guest_email = guest.name, guest.email
            if creator:
                details.created_by_name, details.created_by_email = creator.name, creator.email
        if self._rooms is not None:
            room = await self._rooms.find_by_id(reservation.room_id)
            if room:
                details.room_number = room.number
        return details

    async def find_occupied(self, room_id: int) -> List[OccupiedRange]:
        found = [
            r for r in self._storage.values()
            if r.room_id == room_id and r.status in OCCUPYING_STATUSES
        ]
        return [
            OccupiedRange(id=r.id, start_date=r.start_date, end_date=r.end_date, status=r.status)
            for r in sorted(found, key=lambda r: (r.start_date, r.id))
        ]

    async def find_conflict(
        self, room_id: int, date_range: DateRange, exclude_id: Optional[int] = None
    ) -> Optional[Reservation]:
        for reservation in sorted(self._storage.values(), key=lambda r: r.id):
            if (
                reservation.room_id == room_id
                and reservation.id != exclude_id
                and reservation.status == ReservationStatus.CONFIRMED
                and reservation.overlaps(date_range)
            ):
                return reservation.model_copy()
        return None

    async def exists_for_room(self, room_id: int) -> bool:
        return any(r.room_id == room_id for r in self._storage.values())

    async def exists_for_user(self, user_id: int) -> bool:
        return any(
            user_id in (r.guest_user_id, r.created_by_user_id) for r in self._storage.values()
        )

    async def update(self, reservation: Reservation) -> Reservation:
        if reservation.id in self._storage:
            self._storage[reservation.id] = reservation.model_copy()
            return reservation
        raise NotFoundError("Reservation not found")

    async def delete(self, reservation_id: int) -> bool:
        if reservation_id in self._storage:
            del self._storage[reservation_id]
            return True
        return False

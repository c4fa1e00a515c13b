"""Domain Repository Interfaces"""
from abc import ABC, abstractmethod
from typing import Optional, List

from domain.auth import UserInDB
from domain.entities import Room, Reservation, ReservationDetails, OccupiedRange
from domain.enums import Role
from domain.value_objects import DateRange, ReservationFilter


class ReservationRepository(ABC):
    """Repository interface for Reservation Aggregate"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> Reservation:
        """Insert a new reservation and return it with its generated id"""
        pass

    @abstractmethod
    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def find_by_guest_id(self, guest_user_id: int) -> List[Reservation]:
        """Guest's reservations, newest stay first"""
        pass

    @abstractmethod
    async def find_all(self, filters: ReservationFilter) -> List[ReservationDetails]:
        """Filtered, enriched reservations, newest stay first"""
        pass

    @abstractmethod
    async def find_occupied(self, room_id: int) -> List[OccupiedRange]:
        """Confirmed and pending stays of a room, earliest first"""
        pass

    @abstractmethod
    async def find_conflict(
        self, room_id: int, date_range: DateRange, exclude_id: Optional[int] = None
    ) -> Optional[Reservation]:
        """First confirmed reservation of the room overlapping ``date_range``"""
        pass

    @abstractmethod
    async def exists_for_room(self, room_id: int) -> bool:
        pass

    @abstractmethod
    async def exists_for_user(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def update(self, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def delete(self, reservation_id: int) -> bool:
        pass


class RoomRepository(ABC):
    """Repository interface for the Room Catalog"""

    @abstractmethod
    async def save(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def find_by_id(self, room_id: int) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_by_number(self, number: str) -> Optional[Room]:
        pass

    @abstractmethod
    async def find_all(self, available: Optional[bool] = None) -> List[Room]:
        pass

    @abstractmethod
    async def update(self, room: Room) -> Room:
        pass

    @abstractmethod
    async def delete(self, room_id: int) -> bool:
        pass


class UserRepository(ABC):
    """Repository interface for user accounts"""

    @abstractmethod
    async def save(self, user: UserInDB) -> UserInDB:
        pass

    @abstractmethod
    async def find_by_id(self, user_id: int) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        pass

    @abstractmethod
    async def find_all(self) -> List[UserInDB]:
        pass

    @abstractmethod
    async def count_by_role(self, role: Role) -> int:
        pass

    @abstractmethod
    async def update(self, user: UserInDB) -> UserInDB:
        pass

    @abstractmethod
    async def delete(self, user_id: int) -> bool:
        pass

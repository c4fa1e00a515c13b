"""SQLAlchemy Repository Implementations"""
import logging
from contextlib import asynccontextmanager
from typing import Optional, List

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import aliased

from domain.auth import UserInDB
from domain.entities import Room, Reservation, ReservationDetails, OccupiedRange
from domain.enums import Role, ReservationStatus, OCCUPYING_STATUSES
from domain.exceptions import ConflictError, InternalError, NotFoundError
from domain.repositories import ReservationRepository, RoomRepository, UserRepository
from domain.value_objects import DateRange, ReservationFilter
from infrastructure.models import ReservationModel, RoomModel, UserModel

logger = logging.getLogger(__name__)


class SqlAlchemyRepository:
    """Base class: one session and one transaction per repository call"""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self):
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except IntegrityError as exc:
            logger.warning("Integrity violation in %s: %s", type(self).__name__, exc.orig)
            raise ConflictError("Operation conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            logger.exception("Persistence failure in %s", type(self).__name__)
            raise InternalError("Persistence failure") from exc


# ============================================================================
# USERS
# ============================================================================

def _to_user(row: UserModel) -> UserInDB:
    return UserInDB(
        id=row.id,
        email=row.email,
        phone=row.phone,
        name=row.name,
        role=Role(row.role),
        hashed_password=row.hashed_password,
    )


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):

    async def save(self, user: UserInDB) -> UserInDB:
        async with self._transaction() as session:
            row = UserModel(
                email=user.email,
                phone=user.phone,
                name=user.name,
                role=Role(user.role).value,
                hashed_password=user.hashed_password,
            )
            session.add(row)
            await session.flush()
            return _to_user(row)

    async def find_by_id(self, user_id: int) -> Optional[UserInDB]:
        async with self._transaction() as session:
            row = await session.get(UserModel, user_id)
            return _to_user(row) if row else None

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        async with self._transaction() as session:
            row = await session.scalar(select(UserModel).where(UserModel.email == email))
            return _to_user(row) if row else None

    async def find_all(self) -> List[UserInDB]:
        async with self._transaction() as session:
            rows = await session.scalars(select(UserModel).order_by(UserModel.id))
            return [_to_user(row) for row in rows]

    async def count_by_role(self, role: Role) -> int:
        async with self._transaction() as session:
            query = select(func.count()).select_from(UserModel).where(UserModel.role == Role(role).value)
            return await session.scalar(query)

    async def update(self, user: UserInDB) -> UserInDB:
        async with self._transaction() as session:
            row = await session.get(UserModel, user.id)
            if row is None:
                raise NotFoundError("User not found")
            row.email = user.email
            row.phone = user.phone
            row.name = user.name
            row.role = Role(user.role).value
            row.hashed_password = user.hashed_password
            await session.flush()
            return _to_user(row)

    async def delete(self, user_id: int) -> bool:
        async with self._transaction() as session:
            result = await session.execute(delete(UserModel).where(UserModel.id == user_id))
            return result.rowcount > 0


# ============================================================================
# ROOMS
# ============================================================================

def _to_room(row: RoomModel) -> Room:
    return Room(
        id=row.id,
        number=row.number,
        room_type=row.room_type,
        nightly_price=row.nightly_price,
        description=row.description,
        features=list(row.features or []),
        images=list(row.images or []),
        available=bool(row.available),
    )


class SqlAlchemyRoomRepository(SqlAlchemyRepository, RoomRepository):

    async def save(self, room: Room) -> Room:
        async with self._transaction() as session:
            row = RoomModel(
                number=room.number,
                room_type=room.room_type,
                nightly_price=room.nightly_price,
                description=room.description,
                features=list(room.features),
                images=list(room.images),
                available=room.available,
            )
            session.add(row)
            await session.flush()
            return _to_room(row)

    async def find_by_id(self, room_id: int) -> Optional[Room]:
        async with self._transaction() as session:
            row = await session.get(RoomModel, room_id)
            return _to_room(row) if row else None

    async def find_by_number(self, number: str) -> Optional[Room]:
        async with self._transaction() as session:
            row = await session.scalar(select(RoomModel).where(RoomModel.number == number))
            return _to_room(row) if row else None

    async def find_all(self, available: Optional[bool] = None) -> List[Room]:
        async with self._transaction() as session:
            query = select(RoomModel).order_by(RoomModel.id)
            if available is not None:
                query = query.where(RoomModel.available == available)
            rows = await session.scalars(query)
            return [_to_room(row) for row in rows]

    async def update(self, room: Room) -> Room:
        async with self._transaction() as session:
            row = await session.get(RoomModel, room.id)
            if row is None:
                raise NotFoundError("Room not found")
            row.number = room.number
            row.room_type = room.room_type
            row.nightly_price = room.nightly_price
            row.description = room.description
            row.features = list(room.features)
            row.images = list(room.images)
            row.available = room.available
            await session.flush()
            return _to_room(row)

    async def delete(self, room_id: int) -> bool:
        async with self._transaction() as session:
            result = await session.execute(delete(RoomModel).where(RoomModel.id == room_id))
            return result.rowcount > 0


# ============================================================================
# RESERVATIONS
# ============================================================================

def _to_reservation(row: ReservationModel) -> Reservation:
    return Reservation(
        id=row.id,
        room_id=row.room_id,
        guest_user_id=row.guest_user_id,
        created_by_user_id=row.created_by_user_id,
        start_date=row.start_date,
        end_date=row.end_date,
        status=ReservationStatus(row.status),
        total_price=row.total_price,
    )


class SqlAlchemyReservationRepository(SqlAlchemyRepository, ReservationRepository):

    async def save(self, reservation: Reservation) -> Reservation:
        async with self._transaction() as session:
            row = ReservationModel(
                room_id=reservation.room_id,
                guest_user_id=reservation.guest_user_id,
                created_by_user_id=reservation.created_by_user_id,
                start_date=reservation.start_date,
                end_date=reservation.end_date,
                status=ReservationStatus(reservation.status).value,
                total_price=reservation.total_price,
            )
            session.add(row)
            await session.flush()
            return _to_reservation(row)

    async def find_by_id(self, reservation_id: int) -> Optional[Reservation]:
        async with self._transaction() as session:
            row = await session.get(ReservationModel, reservation_id)
            return _to_reservation(row) if row else None

    async def find_by_guest_id(self, guest_user_id: int) -> List[Reservation]:
        async with self._transaction() as session:
            query = (
                select(ReservationModel)
                .where(ReservationModel.guest_user_id == guest_user_id)
                .order_by(ReservationModel.start_date.desc(), ReservationModel.id.desc())
            )
            rows = await session.scalars(query)
            return [_to_reservation(row) for row in rows]

    async def find_all(self, filters: ReservationFilter) -> List[ReservationDetails]:
        guest = aliased(UserModel)
        creator = aliased(UserModel)
        query = (
            select(
                ReservationModel,
                guest.name.label("guest_name"),
                guest.email.label("guest_email"),
                RoomModel.number.label("room_number"),
                creator.name.label("created_by_name"),
                creator.email.label("created_by_email"),
            )
            .outerjoin(guest, ReservationModel.guest_user_id == guest.id)
            .outerjoin(creator, ReservationModel.created_by_user_id == creator.id)
            .outerjoin(RoomModel, ReservationModel.room_id == RoomModel.id)
            .order_by(ReservationModel.start_date.desc(), ReservationModel.id.desc())
        )
        if filters.guest_user_id is not None:
            query = query.where(ReservationModel.guest_user_id == filters.guest_user_id)
        if filters.room_id is not None:
            query = query.where(ReservationModel.room_id == filters.room_id)

        async with self._transaction() as session:
            result = await session.execute(query)
            return [
                ReservationDetails(
                    **_to_reservation(row.ReservationModel).model_dump(),
                    guest_name=row.guest_name,
                    guest_email=row.guest_email,
                    room_number=row.room_number,
                    created_by_name=row.created_by_name,
                    created_by_email=row.created_by_email,
                )
                for row in result
            ]

    async def find_occupied(self, room_id: int) -> List[OccupiedRange]:
        query = (
            select(
                ReservationModel.id,
                ReservationModel.start_date,
                ReservationModel.end_date,
                ReservationModel.status,
            )
            .where(
                ReservationModel.room_id == room_id,
                ReservationModel.status.in_([s.value for s in OCCUPYING_STATUSES]),
            )
            .order_by(ReservationModel.start_date.asc(), ReservationModel.id.asc())
        )
        async with self._transaction() as session:
            result = await session.execute(query)
            return [OccupiedRange.model_validate(dict(row._mapping)) for row in result]

    async def find_conflict(
        self, room_id: int, date_range: DateRange, exclude_id: Optional[int] = None
    ) -> Optional[Reservation]:
        query = (
            select(ReservationModel)
            .where(
                ReservationModel.room_id == room_id,
                ReservationModel.status == ReservationStatus.CONFIRMED.value,
                ReservationModel.end_date > date_range.start_date,
                ReservationModel.start_date < date_range.end_date,
            )
            .order_by(ReservationModel.id)
            .limit(1)
        )
        if exclude_id is not None:
            query = query.where(ReservationModel.id != exclude_id)
        async with self._transaction() as session:
            row = await session.scalar(query)
            return _to_reservation(row) if row else None

    async def exists_for_room(self, room_id: int) -> bool:
        async with self._transaction() as session:
            return await session.scalar(
                select(exists().where(ReservationModel.room_id == room_id))
            )

    async def exists_for_user(self, user_id: int) -> bool:
        async with self._transaction() as session:
            return await session.scalar(
                select(exists().where(or_(
                    ReservationModel.guest_user_id == user_id,
                    ReservationModel.created_by_user_id == user_id,
                )))
            )

    async def update(self, reservation: Reservation) -> Reservation:
        async with self._transaction() as session:
            row = await session.get(ReservationModel, reservation.id)
            if row is None:
                raise NotFoundError("Reservation not found")
            row.room_id = reservation.room_id
            row.start_date = reservation.start_date
            row.end_date = reservation.end_date
            row.status = ReservationStatus(reservation.status).value
            row.total_price = reservation.total_price
            await session.flush()
            return _to_reservation(row)

    async def delete(self, reservation_id: int) -> bool:
        async with self._transaction() as session:
            result = await session.execute(
                delete(ReservationModel).where(ReservationModel.id == reservation_id)
            )
            return result.rowcount > 0

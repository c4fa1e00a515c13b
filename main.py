import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordRequestForm

from api.dependencies import (
    TOKEN_COOKIE, get_current_principal, get_current_user, get_reservation_service,
    get_room_service, get_settings, get_user_service, issue_token,
)
from api.errors import register_exception_handlers
from api.schemas import (
    # Reservations
    CreateReservationRequest, UpdateReservationRequest, ReservationResponse,
    ReservationDetailsResponse, OccupiedRangeResponse,
    # Rooms
    CreateRoomRequest, UpdateRoomRequest, RoomResponse,
    # Auth & users
    RegisterRequest, LoginRequest, UpdateUserRequest, Token, LoginResponse,
    UserResponse, MessageResponse,
)
from application.locks import RoomLocks
from application.services import ReservationService, RoomService, UserService
from domain.auth import Principal, User
from domain.entities import Reservation, Room
from domain.enums import ReservationStatus, Role
from domain.exceptions import AuthenticationError
from domain.value_objects import ReservationFilter
from infrastructure.config import Settings, get_settings as load_settings
from infrastructure.database import Database
from infrastructure.repositories.in_memory_repositories import (
    InMemoryReservationRepository, InMemoryRoomRepository, InMemoryUserRepository,
)
from infrastructure.repositories.sqlalchemy_repositories import (
    SqlAlchemyReservationRepository, SqlAlchemyRoomRepository, SqlAlchemyUserRepository,
)

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store, wire repositories into services, seed the first admin"""
    settings = load_settings()
    database = None

    if settings.storage_backend == "memory":
        user_repo = InMemoryUserRepository()
        room_repo = InMemoryRoomRepository()
        reservation_repo = InMemoryReservationRepository(user_repo, room_repo)
    elif settings.storage_backend == "sql":
        database = Database(settings.database_url, echo=settings.database_echo)
        await database.connect()
        user_repo = SqlAlchemyUserRepository(database.session_factory)
        room_repo = SqlAlchemyRoomRepository(database.session_factory)
        reservation_repo = SqlAlchemyReservationRepository(database.session_factory)
    else:
        raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend}")

    app.state.settings = settings
    app.state.reservation_service = ReservationService(
        reservation_repo, room_repo, user_repo,
        locks=RoomLocks(),
        lead_time_days=settings.cancellation_lead_days,
    )
    app.state.room_service = RoomService(room_repo, reservation_repo)
    app.state.user_service = UserService(user_repo, reservation_repo)

    await app.state.user_service.ensure_admin(
        settings.admin_email, settings.admin_password, settings.admin_name, settings.admin_phone
    )
    logger.info("Hotel Reservation API started (%s storage)", settings.storage_backend)
    try:
        yield
    finally:
        if database is not None:
            await database.dispose()


app = FastAPI(
    title="Hotel Reservation API",
    description="Users, room catalog and reservation ledger of a hotel",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

# ============================================================================
# HEALTH & ENUM REFERENCE ENDPOINTS
# ============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

@app.get("/api/enums/roles", tags=["Enum Reference"])
async def get_roles():
    """Get all Role values"""
    return {
        "values": [item.value for item in Role],
        "description": "Roles: admin and frontdesk are staff, guest books for themselves"
    }

@app.get("/api/enums/reservation-status", tags=["Enum Reference"])
async def get_reservation_statuses():
    """Get all ReservationStatus values"""
    return {
        "values": [item.value for item in ReservationStatus],
        "description": "Reservation status values: pending, confirmed, cancelled"
    }

# ============================================================================
# AUTH ENDPOINTS
# ============================================================================

@app.post("/token", response_model=Token, tags=["Auth"])
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings)
):
    try:
        user = await service.authenticate(form_data.username, form_data.password)
    except AuthenticationError:
        raise HTTPException(
            status_code=401,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": issue_token(user, settings), "token_type": "bearer"}

@app.post("/api/users/register", response_model=UserResponse, status_code=201, tags=["Users"])
async def register(
    request: RegisterRequest,
    service: UserService = Depends(get_user_service)
):
    """Create a guest account"""
    return await service.register(request.email, request.phone, request.name, request.password)

@app.post("/api/users/login", response_model=LoginResponse, tags=["Users"])
async def login(
    request: LoginRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
    settings: Settings = Depends(get_settings)
):
    """Log in with email and password; the token is also set as a cookie"""
    user = await service.authenticate(request.email, request.password)
    token = issue_token(user, settings)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )
    return {"access_token": token, "token_type": "bearer", "user": user}

@app.post("/api/users/logout", response_model=MessageResponse, tags=["Users"])
async def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE)
    return {"message": "Logged out"}

@app.get("/api/users/status", response_model=UserResponse, tags=["Users"])
async def session_status(current_user: User = Depends(get_current_user)):
    """Current session's user"""
    return current_user

@app.get("/users/me", response_model=UserResponse, tags=["Auth"])
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user

# ============================================================================
# USER ADMINISTRATION ENDPOINTS
# ============================================================================

@app.get("/api/users", response_model=List[UserResponse], tags=["Users"])
async def list_users(
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(get_current_principal)
):
    return await service.list_users(principal)

@app.get("/api/users/{user_id}", response_model=UserResponse, tags=["Users"])
async def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(get_current_principal)
):
    return await service.get_user_as_admin(user_id, principal)

@app.put("/api/users/{user_id}", response_model=UserResponse, tags=["Users"])
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(get_current_principal)
):
    return await service.update_user(
        user_id,
        principal,
        email=request.email,
        phone=request.phone,
        name=request.name,
        role=request.role,
        password=request.password
    )

@app.delete("/api/users/{user_id}", response_model=MessageResponse, tags=["Users"])
async def delete_user(
    user_id: int,
    service: UserService = Depends(get_user_service),
    principal: Principal = Depends(get_current_principal)
):
    await service.delete_user(user_id, principal)
    return {"message": f"User {user_id} deleted"}

# ============================================================================
# ROOM ENDPOINTS
# ============================================================================

@app.get("/api/rooms", response_model=List[RoomResponse], tags=["Rooms"])
async def list_rooms(
    available: Optional[bool] = None,
    service: RoomService = Depends(get_room_service)
):
    """Public room catalog, optionally filtered by availability"""
    rooms = await service.list_rooms(available)
    return [_room_to_response(r) for r in rooms]

@app.get("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def get_room(room_id: int, service: RoomService = Depends(get_room_service)):
    return _room_to_response(await service.get_room(room_id))

@app.post("/api/rooms", response_model=RoomResponse, status_code=201, tags=["Rooms"])
async def create_room(
    request: CreateRoomRequest,
    service: RoomService = Depends(get_room_service),
    principal: Principal = Depends(get_current_principal)
):
    room = await service.create_room(
        principal,
        number=request.number,
        room_type=request.room_type,
        nightly_price=request.nightly_price,
        description=request.description,
        features=request.features,
        images=request.images,
        available=request.available
    )
    return _room_to_response(room)

@app.put("/api/rooms/{room_id}", response_model=RoomResponse, tags=["Rooms"])
async def update_room(
    room_id: int,
    request: UpdateRoomRequest,
    service: RoomService = Depends(get_room_service),
    principal: Principal = Depends(get_current_principal)
):
    room = await service.update_room(
        room_id,
        principal,
        number=request.number,
        room_type=request.room_type,
        nightly_price=request.nightly_price,
        available=request.available,
        description=request.description,
        features=request.features,
        images=request.images
    )
    return _room_to_response(room)

@app.delete("/api/rooms/{room_id}", response_model=MessageResponse, tags=["Rooms"])
async def delete_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
    principal: Principal = Depends(get_current_principal)
):
    await service.delete_room(room_id, principal)
    return {"message": f"Room {room_id} deleted"}

# ============================================================================
# RESERVATION ENDPOINTS
# ============================================================================

@app.post("/api/reservations", response_model=ReservationResponse, status_code=201, tags=["Reservations"])
async def create_reservation(
    request: CreateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Book a room for the caller (staff may book for another guest)"""
    reservation = await service.create_reservation(
        room_id=request.room_id,
        start_date=request.start_date,
        end_date=request.end_date,
        requesting_user=principal,
        guest_user_id=request.guest_user_id
    )
    return _reservation_to_response(reservation)

@app.get("/api/reservations/my", response_model=List[ReservationResponse], tags=["Reservations"])
async def get_my_reservations(
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Caller's own reservations, latest stay first"""
    reservations = await service.list_my_reservations(principal.id)
    return [_reservation_to_response(r) for r in reservations]

@app.get("/api/reservations", response_model=List[ReservationDetailsResponse], tags=["Reservations"])
async def get_all_reservations(
    guest_user_id: Optional[int] = None,
    room_id: Optional[int] = None,
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Staff listing of all reservations, filterable by guest and room"""
    reservations = await service.list_all_reservations(
        principal, ReservationFilter(guest_user_id=guest_user_id, room_id=room_id)
    )
    return [_reservation_to_response(r, ReservationDetailsResponse) for r in reservations]

@app.get("/api/reservations/availability/{room_id}", response_model=List[OccupiedRangeResponse], tags=["Reservations"])
async def check_availability(
    room_id: int,
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Occupied date ranges of a room for calendar rendering"""
    occupied = await service.check_availability(room_id)
    return [OccupiedRangeResponse(**r.model_dump()) for r in occupied]

@app.put("/api/reservations/{reservation_id}", response_model=ReservationResponse, tags=["Reservations"])
async def update_reservation(
    reservation_id: int,
    request: UpdateReservationRequest,
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Staff edit of a reservation's room, dates and status"""
    reservation = await service.update_reservation(
        reservation_id=reservation_id,
        room_id=request.room_id,
        start_date=request.start_date,
        end_date=request.end_date,
        status=request.status,
        requesting_user=principal
    )
    return _reservation_to_response(reservation)

@app.delete("/api/reservations/{reservation_id}", response_model=MessageResponse, tags=["Reservations"])
async def delete_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
    principal: Principal = Depends(get_current_principal)
):
    """Cancel a reservation (guests need the lead time, staff do not)"""
    await service.delete_reservation(reservation_id, principal)
    return {"message": f"Reservation {reservation_id} deleted"}

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _reservation_to_response(reservation: Reservation, response_cls=ReservationResponse):
    """Convert Reservation entity to a response DTO"""
    return response_cls(**reservation.model_dump(), nights=reservation.nights())

def _room_to_response(room: Room) -> RoomResponse:
    return RoomResponse(**room.model_dump())

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

"""API Dependencies - Authentication and service lookup"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from application.services import ReservationService, RoomService, UserService
from domain.auth import Principal, User
from domain.exceptions import NotFoundError
from infrastructure.config import Settings
from infrastructure.security import create_access_token, decode_access_token

# the session cookie is accepted as well, so a missing header is not fatal here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token", auto_error=False)

TOKEN_COOKIE = "token"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_reservation_service(request: Request) -> ReservationService:
    return request.app.state.reservation_service


def get_room_service(request: Request) -> RoomService:
    return request.app.state.room_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def issue_token(user: User, settings: Settings) -> str:
    return create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        secret_key=settings.secret_key,
        algorithm=settings.algorithm,
        expires_delta=timedelta(minutes=settings.access_token_expire_minutes),
    )


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
    users: UserService = Depends(get_user_service),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    token = token or request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise credentials_exception
    try:
        payload = decode_access_token(token, settings.secret_key, settings.algorithm)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise credentials_exception

    try:
        return await users.get_user(user_id)
    except NotFoundError:
        raise credentials_exception


async def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    """Identity handed to the services: id plus the role stored for the user"""
    return Principal(id=current_user.id, role=current_user.role)

"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional

from domain.enums import Role, has_staff_privilege


class User(BaseModel):
    """User Entity"""
    id: Optional[int] = None
    email: str
    phone: str
    name: str
    role: Role = Role.GUEST

    class Config:
        from_attributes = True


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str


class Principal(BaseModel):
    """Authenticated caller of a request"""
    id: int
    role: Role

    @property
    def is_staff(self) -> bool:
        return has_staff_privilege(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    class Config:
        frozen = True

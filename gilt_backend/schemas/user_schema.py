from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class UserAdminOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    is_profile_complete: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalUsers: int
    limit: int


class UserStats(BaseModel):
    total: int
    admin: int
    user: int
    profileComplete: int
    profileIncomplete: int


class UserListResponse(BaseModel):
    users: List[UserAdminOut]
    pagination: Pagination
    stats: UserStats


class UserCreate(BaseModel):
    email: EmailStr
    first_name: Optional[str] = Field(default=None, alias="firstName", max_length=120)
    last_name: Optional[str] = Field(default=None, alias="lastName", max_length=120)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Literal["user", "admin"] = "user"

    model_config = {"populate_by_name": True}


class UserRoleUpdate(BaseModel):
    role: Literal["user", "admin"]

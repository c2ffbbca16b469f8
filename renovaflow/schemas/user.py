from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .common import CamelModel

Role = Literal["admin", "staff"]


class UserCreate(CamelModel):
    id: Optional[str] = None
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: Optional[str] = None
    role: Role = "staff"
    remarks: Optional[str] = None


class UserUpdate(CamelModel):
    email: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    name: Optional[str] = None
    role: Optional[Role] = None
    remarks: Optional[str] = None
    is_active: Optional[bool] = None


class UserOut(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    remarks: Optional[str] = None
    is_active: bool = True

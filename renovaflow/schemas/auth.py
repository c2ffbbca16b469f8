from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str

    model_config = {
        "json_schema_extra": {
            "example": {"email": "admin@example.com", "password": "password123"}
        },
    }


class LoginResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "id": "1",
                "email": "admin@example.com",
                "name": "管理者",
                "role": "admin",
            }
        },
    }

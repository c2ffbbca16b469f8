from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..crud.users import authenticate
from ..db.session import get_db
from ..middlewares import principal_ctx_var
from ..schemas.auth import LoginRequest, LoginResponse

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginResponse, summary="Check email and password")
def api_login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    principal_ctx_var.set(user.email)
    request.state.principal = user.email
    return LoginResponse.model_validate(user)

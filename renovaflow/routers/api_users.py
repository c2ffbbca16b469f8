from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.users import create_user, delete_user, list_users, update_user
from ..db.session import Store, get_db, get_store
from ..schemas.common import SuccessResponse
from ..schemas.user import UserCreate, UserOut, UserUpdate

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def api_list_users(db: Session = Depends(get_db)):
    return [UserOut.model_validate(user) for user in list_users(db)]


@router.post("", response_model=SuccessResponse)
def api_create_user(payload: UserCreate, db: Session = Depends(get_db), store: Store = Depends(get_store)):
    create_user(db, payload.model_dump(), new_id=store.id_factory)
    return SuccessResponse()


@router.put("/{user_id}", response_model=SuccessResponse)
def api_update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    update_user(db, user_id, payload.model_dump(exclude_unset=True))
    return SuccessResponse()


@router.delete("/{user_id}", response_model=SuccessResponse)
def api_delete_user(user_id: str, db: Session = Depends(get_db)):
    delete_user(db, user_id)
    return SuccessResponse()

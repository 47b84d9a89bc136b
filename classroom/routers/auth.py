from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom.core.current_user import get_current_user
from classroom.db.session import get_db
from classroom.models.user import User
from classroom.schemas.auth import LoginResponse
from classroom.schemas.user import LoginRequest, UserRead
from classroom.services import auth_service

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user, access_token = auth_service.login(db, payload.username, payload.role)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": user,
    }


@router.get("/me", response_model=UserRead)
def me(current_user: User = Depends(get_current_user)):
    return current_user

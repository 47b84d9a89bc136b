from fastapi import Depends, HTTPException, status

from classroom.core.current_user import get_current_user
from classroom.models.enums import Role
from classroom.models.user import User


def require_tutor(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.TUTOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tutor role required",
        )
    return current_user


def require_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student role required",
        )
    return current_user

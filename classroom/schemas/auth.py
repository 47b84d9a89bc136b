from pydantic import BaseModel

from classroom.schemas.user import UserRead


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead

from pydantic import BaseModel, Field

from classroom.models.enums import Role


class UserRead(BaseModel):
    id: int
    username: str
    email: str | None = None
    role: Role

    class Config:
        from_attributes = True


class StudentRef(BaseModel):
    id: int
    username: str

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    role: Role

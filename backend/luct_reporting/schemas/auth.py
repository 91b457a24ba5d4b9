"""Auth request/response schemas."""

from pydantic import BaseModel, Field, field_validator

from luct_reporting.lifecycle import Role


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    role: Role

    @field_validator("username", "name", "email", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: str
    username: str
    name: str
    email: str
    role: str
    created_at: str

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse


class UserEnvelope(BaseModel):
    success: bool = True
    data: UserResponse


class UserListResponse(BaseModel):
    success: bool = True
    data: list[UserResponse]
    count: int

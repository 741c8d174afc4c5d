from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    email: EmailStr
    name: str | None = Field(None, max_length=255)


class SignupRequest(UserBase):
    password: str = Field(..., min_length=8, max_length=128)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserSyncRequest(BaseModel):
    """Identity details the client read from the identity provider session."""
    email: EmailStr | None = None
    name: str | None = Field(None, max_length=255)


class UserUpdate(BaseModel):
    name: str | None = Field(None, max_length=255)


class UserResponse(UserBase):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class SupabaseConfigResponse(BaseModel):
    url: str
    anon_key: str

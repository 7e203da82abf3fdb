from typing import Optional

from pydantic import BaseModel, Field, field_validator

from brizzle.schemas import CamelModel

# ==================== REQUEST SCHEMAS ====================

class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class AvatarUpdate(CamelModel):
    avatar: Optional[str] = None

    @field_validator("avatar")
    @classmethod
    def strip_avatar(cls, v):
        return v.strip() if isinstance(v, str) else v

# ==================== RESPONSE SCHEMAS ====================

class UserPublic(BaseModel):
    user_id: str
    name: str
    email: str
    role: str
    avatar: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class MessageResponse(BaseModel):
    success: bool = True
    message: str

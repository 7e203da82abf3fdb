from fastapi import APIRouter, Depends, Response
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth import auth_service as service
from brizzle.auth.auth_context import AuthContext, get_principal
from brizzle.auth.auth_schemas import (
    LoginRequest, LoginResponse, ForgotPasswordRequest, ResetPasswordRequest,
    ChangePasswordRequest, AvatarUpdate, MessageResponse
)
from brizzle.config import SESSION_COOKIE_NAME, SESSION_TTL_HOURS, COOKIE_SECURE
from brizzle.database import get_db

router = APIRouter(tags=["Authentication"])

# ==================== SESSION ====================

@router.post("/auth/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Sign in with email and password.
    The token is returned and also set as an HttpOnly session cookie.
    """
    result = await service.authenticate(db, data.email, data.password)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=result["access_token"],
        max_age=SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )
    return result


@router.post("/auth/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/auth/me")
async def me(
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.get_me(db, principal)

# ==================== PASSWORDS ====================

@router.post("/auth/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Always answers success so the endpoint cannot be used to probe emails
    """
    return await service.request_password_reset(db, data.email)


@router.post("/auth/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.reset_password(db, data.token, data.new_password)


@router.post("/auth/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    return await service.change_password(db, principal, data.current_password, data.new_password)

# ==================== PROFILE ====================

@router.put("/avatar")
async def update_avatar(
    data: AvatarUpdate,
    principal: AuthContext = Depends(get_principal),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Avatar can be an emoji or an image URL
    """
    return await service.update_avatar(db, principal, data.avatar)

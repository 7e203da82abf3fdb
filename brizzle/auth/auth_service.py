import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_context import AuthContext
from brizzle.auth.auth_utils import create_access_token, hash_password, verify_password
from brizzle.auth.mailer import send_password_reset_email
from brizzle.config import MIN_PASSWORD_LENGTH, RESET_TOKEN_TTL_HOURS
from brizzle.errors import NotFound, Unauthenticated, ValidationFailed
from brizzle.users.user_models import PRIVATE_USER_FIELDS

logger = logging.getLogger("brizzle.auth")

INVALID_RESET_TOKEN = "Invalid or expired reset token"
FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_password_length(password: Optional[str], label: str = "Password"):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"{label} must be at least {MIN_PASSWORD_LENGTH} characters long")


def is_valid_avatar(avatar: str) -> bool:
    """Avatar is either a short emoji string or an http(s) image URL"""
    if avatar.startswith("http://") or avatar.startswith("https://"):
        return True
    if len(avatar) > 10:
        return False
    # Emoji strings carry no letters or digits
    return not any(ch.isalnum() for ch in avatar) and not avatar.isspace()


# ==================== LOGIN ====================

async def authenticate(db: AsyncIOMotorDatabase, email: str, password: str) -> dict:
    """
    Check credentials and issue a session token.

    Raises:
        401: Unknown email or wrong password (same message for both)
    """
    user = await db.users.find_one({"email": normalize_email(email)})
    if not user or not verify_password(password, user.get("password", "")):
        raise Unauthenticated("Invalid email or password")

    token = create_access_token(user["user_id"], user["role"])
    logger.info("User %s signed in", user["user_id"])

    return {
        "access_token": token,
        "token_type": "bearer",
        "user": {
            "user_id": user["user_id"],
            "name": user["name"],
            "email": user["email"],
            "role": user["role"],
            "avatar": user.get("avatar"),
        },
    }


async def get_me(db: AsyncIOMotorDatabase, principal: AuthContext) -> dict:
    user = await db.users.find_one({"user_id": principal.user_id}, PRIVATE_USER_FIELDS)
    if not user:
        raise NotFound("User not found")
    return user

# ==================== PASSWORD RESET ====================

async def request_password_reset(db: AsyncIOMotorDatabase, email: Optional[str]) -> dict:
    """
    Store a one-hour reset token and email the link.
    The answer is identical whether or not the email is registered.
    """
    if not email or not email.strip():
        raise ValidationFailed("Email is required")

    user = await db.users.find_one({"email": normalize_email(email)}, {"user_id": 1, "email": 1, "name": 1})

    if user:
        reset_token = secrets.token_hex(32)
        expiry = datetime.utcnow() + timedelta(hours=RESET_TOKEN_TTL_HOURS)
        await db.users.update_one(
            {"user_id": user["user_id"]},
            {"$set": {"reset_token": reset_token, "reset_token_expiry": expiry}}
        )
        await send_password_reset_email(user["email"], user.get("name"), reset_token)
    else:
        logger.info("Password reset requested for unknown email")

    return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}


async def reset_password(db: AsyncIOMotorDatabase, token: Optional[str], new_password: Optional[str]) -> dict:
    """
    Raises:
        400: Missing fields, short password, unknown or expired token
    """
    if not token or not new_password:
        raise ValidationFailed("Token and new password are required")
    check_password_length(new_password)

    user = await db.users.find_one({"reset_token": token})
    if not user or not user.get("reset_token_expiry"):
        raise ValidationFailed(INVALID_RESET_TOKEN)

    if user["reset_token_expiry"] < datetime.utcnow():
        raise ValidationFailed("Reset token has expired. Please request a new one.")

    # Matching on the token makes the reset single-use under concurrent requests
    result = await db.users.update_one(
        {"user_id": user["user_id"], "reset_token": token},
        {"$set": {
            "password": hash_password(new_password),
            "reset_token": None,
            "reset_token_expiry": None,
            "updated_at": datetime.utcnow()
        }}
    )
    if result.modified_count == 0:
        raise ValidationFailed(INVALID_RESET_TOKEN)

    logger.info("Password reset completed for %s", user["user_id"])
    return {
        "success": True,
        "message": "Password has been reset successfully. You can now log in with your new password."
    }


async def change_password(
    db: AsyncIOMotorDatabase,
    principal: AuthContext,
    current_password: Optional[str],
    new_password: Optional[str]
) -> dict:
    if not current_password or not new_password:
        raise ValidationFailed("Current password and new password are required")
    check_password_length(new_password, "New password")

    user = await db.users.find_one({"user_id": principal.user_id}, {"password": 1})
    if not user:
        raise NotFound("User not found")

    if not verify_password(current_password, user.get("password", "")):
        raise ValidationFailed("Current password is incorrect")

    await db.users.update_one(
        {"user_id": principal.user_id},
        {"$set": {"password": hash_password(new_password), "updated_at": datetime.utcnow()}}
    )
    return {"success": True, "message": "Password changed successfully"}

# ==================== AVATAR ====================

async def update_avatar(db: AsyncIOMotorDatabase, principal: AuthContext, avatar: Optional[str]) -> dict:
    if not avatar:
        raise ValidationFailed("Avatar is required")
    if not is_valid_avatar(avatar):
        raise ValidationFailed("Avatar must be either an emoji or a valid image URL")

    await db.users.update_one(
        {"user_id": principal.user_id},
        {"$set": {"avatar": avatar, "updated_at": datetime.utcnow()}}
    )
    return {"success": True, "avatar": avatar}

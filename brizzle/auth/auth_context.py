from typing import Optional

from fastapi import Depends, Header, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from brizzle.auth.auth_utils import decode_access_token
from brizzle.config import SESSION_COOKIE_NAME
from brizzle.database import get_db
from brizzle.errors import Forbidden, Unauthenticated
from brizzle.users.user_models import Role


class AuthContext:
    """
    Authenticated principal for one request.
    Built once by get_principal and passed into every service call.
    """
    def __init__(self, user: dict):
        self.user_id = user["user_id"]
        self.role = user.get("role", Role.STUDENT.value)
        self.name = user.get("name")
        self.email = user.get("email")
        self.avatar = user.get("avatar")

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER.value

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT.value

    def __repr__(self):
        return f"AuthContext({self.user_id!r}, {self.role!r})"


def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return request.cookies.get(SESSION_COOKIE_NAME)


async def get_optional_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_db)
) -> Optional[AuthContext]:
    """
    Resolve the session token (Bearer header or session cookie) to a principal.
    Returns None when the request carries no token at all.

    Raises:
        401: Token invalid, expired, or user no longer exists
    """
    token = _extract_token(request, authorization)
    if not token:
        return None

    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Invalid token: missing user_id")

    user = await db.users.find_one({"user_id": user_id}, {"_id": 0, "password": 0})
    if not user:
        raise Unauthenticated("Session no longer valid")

    return AuthContext(user)


async def get_principal(
    principal: Optional[AuthContext] = Depends(get_optional_principal)
) -> AuthContext:
    if principal is None:
        raise Unauthenticated()
    return principal


async def require_teacher(principal: AuthContext = Depends(get_principal)) -> AuthContext:
    """
    Raises:
        401: Not signed in
        403: Not a teacher
    """
    if not principal.is_teacher:
        raise Forbidden("Access denied. Teacher privileges required.")
    return principal


async def require_student(principal: AuthContext = Depends(get_principal)) -> AuthContext:
    """
    Raises:
        401: Not signed in
        403: Not a student
    """
    if not principal.is_student:
        raise Forbidden("Access denied. Student account required.")
    return principal

from datetime import datetime, timedelta

import bcrypt
from jose import jwt, JWTError

from brizzle.config import JWT_SECRET_KEY, JWT_ALGORITHM, SESSION_TTL_HOURS
from brizzle.errors import Unauthenticated

_DEV_SECRET = "brizzle-development-secret"


def _secret() -> str:
    return JWT_SECRET_KEY or _DEV_SECRET


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: str, role: str) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + timedelta(hours=SESSION_TTL_HOURS),
    }
    return jwt.encode(payload, _secret(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, _secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise Unauthenticated("Invalid or Expired Token")

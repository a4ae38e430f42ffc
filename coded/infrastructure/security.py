import secrets
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext
from jose import jwt, JWTError
from ..config import settings

pwd = CryptContext(
    schemes=["bcrypt_sha256"],
    deprecated="auto",
    bcrypt_sha256__truncate_error=False,
)


class PasswordHasher:
    def hash(self, plain: str) -> str: return pwd.hash(plain)
    def verify(self, plain: str, hashed: str) -> bool: return pwd.verify(plain, hashed)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def session_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(days=settings.SESSION_TTL_DAYS)


def create_access_token(user_id: int, session_token: str, expires_at: datetime) -> str:
    payload = {"sub": str(user_id), "sid": session_token, "exp": expires_at}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> tuple[int, str]:
    """Возвращает (user_id, session_token) из токена или кидает JWTError."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    sub = payload.get("sub")
    sid = payload.get("sid")
    if not sub or not sid:
        raise JWTError("No subject")
    try:
        return int(sub), sid
    except ValueError:
        raise JWTError("Malformed subject")


class TokenIssuer:
    def new_session_token(self) -> str: return new_session_token()
    def session_expiry(self, now: datetime) -> datetime: return session_expiry(now)

    def create_access_token(self, user_id: int, session_token: str, expires_at: datetime) -> str:
        return create_access_token(user_id, session_token, expires_at)

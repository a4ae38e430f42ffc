from datetime import datetime, timedelta

import structlog

from ...domain.clock import as_utc, utcnow
from ...domain.entities import User
from ..dto import AuthResult
from ..ports import ISessionRepository, IUserRepository

logger = structlog.get_logger(__name__)


class ITokenIssuer:
    def new_session_token(self) -> str: ...
    def session_expiry(self, now: datetime) -> datetime: ...
    def create_access_token(self, user_id: int, session_token: str, expires_at: datetime) -> str: ...


def next_login_streak(previous_login: datetime | None, current_streak: int, now: datetime) -> int:
    """Серия входов по календарным дням (UTC)."""
    if previous_login is None:
        return 1
    last_day = as_utc(previous_login).date()
    today = as_utc(now).date()
    if last_day == today:
        return max(current_streak, 1)
    if last_day == today - timedelta(days=1):
        return current_streak + 1
    return 1


class StartSession:
    """Создаёт сессию и обновляет серию входов."""

    def __init__(self, users: IUserRepository, sessions: ISessionRepository, tokens: ITokenIssuer):
        self.users = users
        self.sessions = sessions
        self.tokens = tokens

    def execute(self, user: User) -> AuthResult:
        now = utcnow()
        streak = next_login_streak(user.last_login_at, user.login_streak, now)
        self.users.record_login(user.id, streak, now)

        session_token = self.tokens.new_session_token()
        expires_at = self.tokens.session_expiry(now)
        self.sessions.create(user.id, session_token, expires_at)
        token = self.tokens.create_access_token(user.id, session_token, expires_at)
        return AuthResult(user=self.users.get(user.id), access_token=token, expires_at=expires_at)


class EndSession:
    def __init__(self, sessions: ISessionRepository):
        self.sessions = sessions

    def execute(self, session_token: str | None) -> None:
        if not session_token:
            return
        # отсутствующая сессия не ошибка
        if self.sessions.delete(session_token):
            logger.info("session_destroyed")


class ResolveSession:
    """Пользователь по (user_id, session_token) из токена или None."""

    def __init__(self, users: IUserRepository, sessions: ISessionRepository):
        self.users = users
        self.sessions = sessions

    def execute(self, user_id: int, session_token: str) -> User | None:
        session = self.sessions.get(session_token)
        if session is None or session.user_id != user_id:
            return None
        if as_utc(session.expires_at) <= utcnow():
            return None
        return self.users.get(user_id)

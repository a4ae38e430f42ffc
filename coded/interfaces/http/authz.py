from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from ...application.use_cases.sessions import ResolveSession
from ...config import settings
from ...domain.entities import RequestContext
from ...infrastructure.db import get_db
from ...infrastructure.repositories import SessionRepository, UserRepository
from ...infrastructure.security import decode_token

# без заголовка не падаем: анонимный запрос тоже допустим
bearer = HTTPBearer(auto_error=False)


def get_token(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> str | None:
    if creds:
        return creds.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_request_context(
    token: str | None = Depends(get_token),
    db: Session = Depends(get_db),
) -> RequestContext:
    if not token:
        return RequestContext()
    try:
        user_id, session_token = decode_token(token)
    except JWTError:
        return RequestContext()
    user = ResolveSession(UserRepository(db), SessionRepository(db)).execute(user_id, session_token)
    return RequestContext(user=user)


def require_context(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
    ctx.require_user()
    return ctx

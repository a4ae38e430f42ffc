from fastapi import APIRouter, Depends, Request, Response, status
from jose import JWTError
from sqlalchemy.orm import Session

from ....application.dto import AuthResult, RegisterUserInput
from ....application.use_cases.register_user import LoginUser, RegisterUser
from ....application.use_cases.sessions import EndSession, StartSession
from ....config import settings
from ....domain.entities import RequestContext, User
from ....domain.rewards import compute_level
from ....infrastructure.db import get_db
from ....infrastructure.ratelimit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from ....infrastructure.repositories import SessionRepository, UserRepository
from ....infrastructure.security import PasswordHasher, TokenIssuer, decode_token
from ..authz import get_token, require_context
from ..schemas import LoginReq, RegisterReq, TokenResp, UserResp

router = APIRouter(prefix="/api/auth", tags=["auth"])


def to_user_resp(user: User) -> UserResp:
    return UserResp(
        id=user.id,
        username=user.username,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        xp_points=user.xp_points,
        level=compute_level(user.xp_points),
        login_streak=user.login_streak,
    )


def _start_session(db: Session) -> StartSession:
    return StartSession(UserRepository(db), SessionRepository(db), TokenIssuer())


def _issue(response: Response, result: AuthResult) -> TokenResp:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        result.access_token,
        httponly=True,
        samesite="lax",
        expires=result.expires_at,
    )
    return TokenResp(access_token=result.access_token, expires_at=result.expires_at,
                     user=to_user_resp(result.user))


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/register", response_model=TokenResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
def register(
    request: Request,
    payload: RegisterReq,
    response: Response,
    db: Session = Depends(get_db),
):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher(), start_session=_start_session(db))
    result = uc.execute(RegisterUserInput(username=payload.username, email=payload.email,
                                          password=payload.password))
    db.commit()
    return _issue(response, result)


@router.post("/login", response_model=TokenResp)
@limiter.limit(LOGIN_LIMIT)
def login(
    request: Request,
    payload: LoginReq,
    response: Response,
    db: Session = Depends(get_db),
):
    uc = LoginUser(repo=UserRepository(db), hasher=PasswordHasher(), start_session=_start_session(db))
    result = uc.execute(payload.email, payload.password)
    db.commit()
    return _issue(response, result)


@router.post("/logout")
def logout(
    response: Response,
    token: str | None = Depends(get_token),
    db: Session = Depends(get_db),
):
    session_token = None
    if token:
        try:
            _, session_token = decode_token(token)
        except JWTError:
            session_token = None
    EndSession(SessionRepository(db)).execute(session_token)
    db.commit()
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"ok": True}


@router.get("/me", response_model=UserResp)
def me(ctx: RequestContext = Depends(require_context)):
    return to_user_resp(ctx.user)

import structlog

from ...domain.entities import User
from ...domain.errors import Conflict, Unauthenticated
from ..dto import AuthResult, RegisterUserInput
from ..ports import IUserRepository
from .sessions import StartSession

logger = structlog.get_logger(__name__)


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


def conflict_for(fields: set[str]) -> Conflict:
    return Conflict({
        "email": ["Email already in use"] if "email" in fields else [],
        "username": ["Username already taken"] if "username" in fields else [],
    })


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher, start_session: StartSession):
        self.repo = repo
        self.hasher = hasher
        self.start_session = start_session

    def execute(self, data: RegisterUserInput) -> AuthResult:
        existing = self.repo.find_by_email_or_username(data.email, data.username)
        if existing:
            taken = set()
            if existing.email == data.email:
                taken.add("email")
            if existing.username == data.username:
                taken.add("username")
            raise conflict_for(taken)
        pwd_hash = self.hasher.hash(data.password)
        user = self.repo.create(data.username, data.email, pwd_hash)
        if user is None:
            # параллельная регистрация успела вставить строку после проверки
            raise conflict_for(self.repo.taken_fields(data.email, data.username))
        logger.info("user_registered", user_id=user.id)
        return self.start_session.execute(user)


class LoginUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher, start_session: StartSession):
        self.repo = repo
        self.hasher = hasher
        self.start_session = start_session

    def execute(self, email: str, password: str) -> AuthResult:
        user: User | None = self.repo.get_by_email(email)
        if user is None:
            raise Unauthenticated("Invalid email or password")
        pwd_hash = self.repo.get_password_hash(user.id)
        if not pwd_hash or not self.hasher.verify(password, pwd_hash):
            raise Unauthenticated("Invalid email or password")
        logger.info("user_logged_in", user_id=user.id)
        return self.start_session.execute(user)

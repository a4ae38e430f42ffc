from dataclasses import dataclass
from datetime import datetime

from ..domain.entities import User


@dataclass
class RegisterUserInput:
    username: str
    email: str
    password: str


@dataclass
class AuthResult:
    user: User
    access_token: str
    expires_at: datetime


@dataclass
class ProjectInput:
    name: str | None = None
    language: str | None = None
    description: str | None = None
    code_content: str | None = None
    status: str | None = None

from dataclasses import dataclass
from datetime import datetime

from .errors import Unauthenticated


@dataclass(frozen=True)
class User:
    id: int | None
    username: str
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    xp_points: int = 0
    login_streak: int = 0
    last_login_at: datetime | None = None


@dataclass(frozen=True)
class LearningModule:
    id: int
    title: str
    language: str
    difficulty: str
    order_index: int
    description: str | None = None


@dataclass(frozen=True)
class Lesson:
    id: int
    module_id: int
    title: str
    order_index: int


@dataclass(frozen=True)
class ContentBlock:
    id: int
    lesson_id: int
    content_type: str
    content: str
    content_order: int


@dataclass(frozen=True)
class LessonProgress:
    user_id: int
    lesson_id: int
    is_completed: bool
    last_position: int
    completed_at: datetime | None = None


@dataclass(frozen=True)
class ModuleProgress:
    user_id: int
    module_id: int
    progress_percentage: int
    completed: bool
    last_accessed: datetime | None = None
    module: LearningModule | None = None


@dataclass(frozen=True)
class Game:
    id: int
    name: str
    description: str | None = None
    icon_name: str | None = None


@dataclass(frozen=True)
class GameScore:
    id: int
    user_id: int
    game_id: int
    score: int
    played_at: datetime
    game: Game | None = None


@dataclass(frozen=True)
class Achievement:
    id: int
    code: str
    name: str
    xp_reward: int
    description: str | None = None
    icon_name: str | None = None


@dataclass(frozen=True)
class EarnedAchievement:
    achievement: Achievement
    earned_at: datetime


@dataclass(frozen=True)
class Project:
    id: int
    user_id: int
    name: str
    language: str
    code_content: str
    status: str
    updated_at: datetime
    description: str | None = None


@dataclass(frozen=True)
class Session:
    user_id: int
    session_token: str
    expires_at: datetime


@dataclass(frozen=True)
class RequestContext:
    """Контекст запроса: пользователь, от имени которого выполняется действие."""

    user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> User:
        if self.user is None:
            raise Unauthenticated("Unauthorized")
        return self.user

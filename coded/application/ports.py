from datetime import datetime

from ..domain.entities import (
    Achievement,
    ContentBlock,
    EarnedAchievement,
    Game,
    GameScore,
    LearningModule,
    Lesson,
    LessonProgress,
    ModuleProgress,
    Project,
    Session,
    User,
)


class IUserRepository:
    def get(self, user_id: int) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def get_password_hash(self, user_id: int) -> str | None: ...
    def find_by_email_or_username(self, email: str, username: str) -> User | None: ...
    def create(self, username: str, email: str, password_hash: str) -> User | None: ...
    def taken_fields(self, email: str, username: str) -> set[str]: ...
    def increment_xp(self, user_id: int, amount: int) -> None: ...
    def record_login(self, user_id: int, login_streak: int, at: datetime) -> None: ...
    def update_profile(self, user_id: int, display_name: str, avatar_url: str | None) -> User: ...


class ISessionRepository:
    def create(self, user_id: int, session_token: str, expires_at: datetime) -> Session: ...
    def get(self, session_token: str) -> Session | None: ...
    def delete(self, session_token: str) -> bool: ...


class IContentRepository:
    def list_modules(self) -> list[LearningModule]: ...
    def get_module(self, module_id: int) -> LearningModule | None: ...
    def count_modules(self) -> int: ...
    def list_lessons(self, module_id: int) -> list[Lesson]: ...
    def get_lesson(self, lesson_id: int) -> Lesson | None: ...
    def list_content(self, lesson_id: int) -> list[ContentBlock]: ...


class IProgressRepository:
    def get_lesson_progress(self, user_id: int, lesson_id: int) -> LessonProgress | None: ...
    def list_lesson_progress(self, user_id: int, lesson_ids: list[int]) -> list[LessonProgress]: ...
    def complete_lesson(self, user_id: int, lesson_id: int, at: datetime) -> bool: ...
    def set_lesson_position(self, user_id: int, lesson_id: int, position: int) -> None: ...
    def count_completed_lessons(self, user_id: int, lesson_ids: list[int] | None = None) -> int: ...
    def save_module_progress(self, user_id: int, module_id: int, percentage: int, at: datetime) -> bool: ...
    def get_module_progress(self, user_id: int, module_id: int) -> ModuleProgress | None: ...
    def count_completed_modules(self, user_id: int) -> int: ...
    def list_module_progress(self, user_id: int) -> list[ModuleProgress]: ...


class IGameRepository:
    def list_games(self) -> list[Game]: ...
    def get_game(self, game_id: int) -> Game | None: ...
    def add_score(self, user_id: int, game_id: int, score: int, at: datetime) -> GameScore: ...
    def count_plays(self, user_id: int) -> int: ...
    def count_distinct_games(self, user_id: int) -> int: ...
    def total_score(self, user_id: int) -> int: ...
    def high_scores(self, user_id: int, limit: int) -> list[dict]: ...
    def recent_scores(self, user_id: int, limit: int) -> list[GameScore]: ...
    def leaderboard(self, game_id: int, limit: int) -> list[dict]: ...


class IAchievementRepository:
    def get_by_code(self, code: str) -> Achievement | None: ...
    def award(self, user_id: int, achievement_id: int, at: datetime) -> bool: ...
    def count_for_user(self, user_id: int, since: datetime | None = None) -> int: ...
    def list_for_user(self, user_id: int, limit: int | None = None) -> list[EarnedAchievement]: ...


class IProjectRepository:
    def list_for_user(self, user_id: int, limit: int | None = None) -> list[Project]: ...
    def get(self, user_id: int, project_id: int) -> Project | None: ...
    def create(self, user_id: int, **fields) -> Project: ...
    def update(self, user_id: int, project_id: int, **fields) -> Project | None: ...
    def delete(self, user_id: int, project_id: int) -> bool: ...

from datetime import datetime

from sqlalchemy import delete, distinct, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..application.ports import (
    IAchievementRepository,
    IContentRepository,
    IGameRepository,
    IProgressRepository,
    IProjectRepository,
    ISessionRepository,
    IUserRepository,
)
from ..domain.clock import utcnow
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
    Session as UserSession,
    User,
)
from .models import (
    AchievementORM,
    GameORM,
    GameScoreORM,
    LearningContentORM,
    LearningModuleORM,
    LessonORM,
    ProjectORM,
    SessionORM,
    UserAchievementORM,
    UserLessonProgressORM,
    UserORM,
    UserProgressORM,
)

# Core-update'ы не синхронизируем с identity map, чтения идут с populate_existing
NO_SYNC = {"synchronize_session": False}


def insert_if_absent(db: Session, model, values: dict, index_elements: list[str]) -> bool:
    """INSERT ... ON CONFLICT DO NOTHING. True, если строка вставлена.

    Уникальность гарантирует БД, а не предварительная проверка в приложении.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    elif dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values).on_conflict_do_nothing(index_elements=index_elements)
    else:
        try:
            with db.begin_nested():
                db.execute(insert(model).values(**values))
        except IntegrityError:
            return False
        return True
    return db.execute(stmt).rowcount == 1


def user_to_domain(u: UserORM) -> User:
    return User(
        id=u.id,
        username=u.username,
        email=u.email,
        display_name=u.display_name,
        avatar_url=u.avatar_url,
        xp_points=u.xp_points or 0,
        login_streak=u.login_streak or 0,
        last_login_at=u.last_login_at,
    )


def module_to_domain(m: LearningModuleORM) -> LearningModule:
    return LearningModule(
        id=m.id,
        title=m.title,
        language=m.language,
        difficulty=m.difficulty,
        order_index=m.order_index,
        description=m.description,
    )


def lesson_to_domain(row: LessonORM) -> Lesson:
    return Lesson(id=row.id, module_id=row.module_id, title=row.title, order_index=row.order_index)


def lesson_progress_to_domain(row: UserLessonProgressORM) -> LessonProgress:
    return LessonProgress(
        user_id=row.user_id,
        lesson_id=row.lesson_id,
        is_completed=row.is_completed,
        last_position=row.last_position,
        completed_at=row.completed_at,
    )


def module_progress_to_domain(row: UserProgressORM, with_module: bool = False) -> ModuleProgress:
    return ModuleProgress(
        user_id=row.user_id,
        module_id=row.module_id,
        progress_percentage=row.progress_percentage,
        completed=row.completed,
        last_accessed=row.last_accessed,
        module=module_to_domain(row.module) if with_module else None,
    )


def game_to_domain(g: GameORM) -> Game:
    return Game(id=g.id, name=g.name, description=g.description, icon_name=g.icon_name)


def score_to_domain(row: GameScoreORM, with_game: bool = False) -> GameScore:
    return GameScore(
        id=row.id,
        user_id=row.user_id,
        game_id=row.game_id,
        score=row.score,
        played_at=row.played_at,
        game=game_to_domain(row.game) if with_game else None,
    )


def achievement_to_domain(a: AchievementORM) -> Achievement:
    return Achievement(
        id=a.id,
        code=a.code,
        name=a.name,
        xp_reward=a.xp_reward,
        description=a.description,
        icon_name=a.icon_name,
    )


def project_to_domain(p: ProjectORM) -> Project:
    return Project(
        id=p.id,
        user_id=p.user_id,
        name=p.name,
        language=p.language,
        code_content=p.code_content,
        status=p.status,
        updated_at=p.updated_at,
        description=p.description,
    )


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def _row(self, user_id: int) -> UserORM | None:
        return self.db.get(UserORM, user_id, populate_existing=True)

    def get(self, user_id: int) -> User | None:
        row = self._row(user_id)
        return user_to_domain(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return user_to_domain(row) if row else None

    def get_password_hash(self, user_id: int) -> str | None:
        return self.db.scalar(select(UserORM.password_hash).where(UserORM.id == user_id))

    def find_by_email_or_username(self, email: str, username: str) -> User | None:
        row = (self.db.query(UserORM)
               .filter((UserORM.email == email) | (UserORM.username == username))
               .first())
        return user_to_domain(row) if row else None

    def taken_fields(self, email: str, username: str) -> set[str]:
        taken = set()
        if self.db.scalar(select(UserORM.id).where(UserORM.email == email)) is not None:
            taken.add("email")
        if self.db.scalar(select(UserORM.id).where(UserORM.username == username)) is not None:
            taken.add("username")
        return taken

    def create(self, username: str, email: str, password_hash: str) -> User | None:
        """None, если email или username уже заняты (проверяет уникальный индекс).

        При конфликте текущая транзакция откатывается.
        """
        row = UserORM(username=username, email=email, password_hash=password_hash,
                      display_name=username, xp_points=0, login_streak=0)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(row)
        return user_to_domain(row)

    def increment_xp(self, user_id: int, amount: int) -> None:
        # атомарный инкремент на стороне БД, без read-modify-write
        self.db.execute(
            update(UserORM)
            .where(UserORM.id == user_id)
            .values(xp_points=UserORM.xp_points + amount)
            .execution_options(**NO_SYNC)
        )

    def record_login(self, user_id: int, login_streak: int, at: datetime) -> None:
        self.db.execute(
            update(UserORM)
            .where(UserORM.id == user_id)
            .values(login_streak=login_streak, last_login_at=at)
            .execution_options(**NO_SYNC)
        )

    def update_profile(self, user_id: int, display_name: str, avatar_url: str | None) -> User:
        self.db.execute(
            update(UserORM)
            .where(UserORM.id == user_id)
            .values(display_name=display_name, avatar_url=avatar_url)
            .execution_options(**NO_SYNC)
        )
        return user_to_domain(self._row(user_id))


class SessionRepository(ISessionRepository):
    def __init__(self, db: Session): self.db = db

    def create(self, user_id: int, session_token: str, expires_at: datetime) -> UserSession:
        row = SessionORM(user_id=user_id, session_token=session_token, expires_at=expires_at)
        self.db.add(row); self.db.flush()
        return UserSession(user_id=user_id, session_token=session_token, expires_at=expires_at)

    def get(self, session_token: str) -> UserSession | None:
        row = self.db.query(SessionORM).filter(SessionORM.session_token == session_token).first()
        if not row:
            return None
        return UserSession(user_id=row.user_id, session_token=row.session_token, expires_at=row.expires_at)

    def delete(self, session_token: str) -> bool:
        res = self.db.execute(
            delete(SessionORM)
            .where(SessionORM.session_token == session_token)
            .execution_options(**NO_SYNC)
        )
        return res.rowcount > 0


class ContentRepository(IContentRepository):
    def __init__(self, db: Session): self.db = db

    def list_modules(self) -> list[LearningModule]:
        rows = (self.db.query(LearningModuleORM)
                .order_by(LearningModuleORM.order_index, LearningModuleORM.id)
                .all())
        return [module_to_domain(r) for r in rows]

    def get_module(self, module_id: int) -> LearningModule | None:
        row = self.db.get(LearningModuleORM, module_id)
        return module_to_domain(row) if row else None

    def count_modules(self) -> int:
        return self.db.scalar(select(func.count()).select_from(LearningModuleORM)) or 0

    def list_lessons(self, module_id: int) -> list[Lesson]:
        rows = (self.db.query(LessonORM)
                .filter(LessonORM.module_id == module_id)
                .order_by(LessonORM.order_index, LessonORM.id)
                .all())
        return [lesson_to_domain(r) for r in rows]

    def get_lesson(self, lesson_id: int) -> Lesson | None:
        row = self.db.get(LessonORM, lesson_id)
        return lesson_to_domain(row) if row else None

    def list_content(self, lesson_id: int) -> list[ContentBlock]:
        rows = (self.db.query(LearningContentORM)
                .filter(LearningContentORM.lesson_id == lesson_id)
                .order_by(LearningContentORM.content_order, LearningContentORM.id)
                .all())
        return [ContentBlock(id=r.id, lesson_id=r.lesson_id, content_type=r.content_type,
                             content=r.content, content_order=r.content_order) for r in rows]


class ProgressRepository(IProgressRepository):
    def __init__(self, db: Session): self.db = db

    def _lesson_row(self, user_id: int, lesson_id: int):
        return (self.db.query(UserLessonProgressORM)
                .populate_existing()
                .filter(UserLessonProgressORM.user_id == user_id,
                        UserLessonProgressORM.lesson_id == lesson_id)
                .first())

    def get_lesson_progress(self, user_id: int, lesson_id: int) -> LessonProgress | None:
        row = self._lesson_row(user_id, lesson_id)
        return lesson_progress_to_domain(row) if row else None

    def list_lesson_progress(self, user_id: int, lesson_ids: list[int]) -> list[LessonProgress]:
        if not lesson_ids:
            return []
        rows = (self.db.query(UserLessonProgressORM)
                .populate_existing()
                .filter(UserLessonProgressORM.user_id == user_id,
                        UserLessonProgressORM.lesson_id.in_(lesson_ids))
                .order_by(UserLessonProgressORM.lesson_id)
                .all())
        return [lesson_progress_to_domain(r) for r in rows]

    def complete_lesson(self, user_id: int, lesson_id: int, at: datetime) -> bool:
        """Отмечает урок пройденным. True только при первом прохождении."""
        inserted = insert_if_absent(
            self.db, UserLessonProgressORM,
            {"user_id": user_id, "lesson_id": lesson_id, "is_completed": True,
             "last_position": 0, "completed_at": at, "updated_at": at},
            ["user_id", "lesson_id"],
        )
        if inserted:
            return True
        res = self.db.execute(
            update(UserLessonProgressORM)
            .where(UserLessonProgressORM.user_id == user_id,
                   UserLessonProgressORM.lesson_id == lesson_id,
                   UserLessonProgressORM.is_completed.is_(False))
            .values(is_completed=True, completed_at=at, updated_at=at)
            .execution_options(**NO_SYNC)
        )
        return res.rowcount == 1

    def set_lesson_position(self, user_id: int, lesson_id: int, position: int) -> None:
        inserted = insert_if_absent(
            self.db, UserLessonProgressORM,
            {"user_id": user_id, "lesson_id": lesson_id, "is_completed": False,
             "last_position": position, "updated_at": utcnow()},
            ["user_id", "lesson_id"],
        )
        if not inserted:
            self.db.execute(
                update(UserLessonProgressORM)
                .where(UserLessonProgressORM.user_id == user_id,
                       UserLessonProgressORM.lesson_id == lesson_id)
                .values(last_position=position, updated_at=utcnow())
                .execution_options(**NO_SYNC)
            )

    def count_completed_lessons(self, user_id: int, lesson_ids: list[int] | None = None) -> int:
        q = (select(func.count())
             .select_from(UserLessonProgressORM)
             .where(UserLessonProgressORM.user_id == user_id,
                    UserLessonProgressORM.is_completed.is_(True)))
        if lesson_ids is not None:
            if not lesson_ids:
                return 0
            q = q.where(UserLessonProgressORM.lesson_id.in_(lesson_ids))
        return self.db.scalar(q) or 0

    def save_module_progress(self, user_id: int, module_id: int, percentage: int, at: datetime) -> bool:
        """Сохраняет процент по модулю. True, если модуль впервые стал пройденным."""
        completed = percentage == 100
        inserted = insert_if_absent(
            self.db, UserProgressORM,
            {"user_id": user_id, "module_id": module_id, "progress_percentage": percentage,
             "completed": completed, "completed_at": at if completed else None,
             "last_accessed": at, "updated_at": at},
            ["user_id", "module_id"],
        )
        if inserted:
            return completed

        where = (UserProgressORM.user_id == user_id, UserProgressORM.module_id == module_id)
        self.db.execute(
            update(UserProgressORM)
            .where(*where)
            .values(progress_percentage=percentage, completed=completed,
                    last_accessed=at, updated_at=at)
            .execution_options(**NO_SYNC)
        )
        if not completed:
            return False
        res = self.db.execute(
            update(UserProgressORM)
            .where(*where, UserProgressORM.completed_at.is_(None))
            .values(completed_at=at)
            .execution_options(**NO_SYNC)
        )
        return res.rowcount == 1

    def get_module_progress(self, user_id: int, module_id: int) -> ModuleProgress | None:
        row = (self.db.query(UserProgressORM)
               .populate_existing()
               .filter(UserProgressORM.user_id == user_id, UserProgressORM.module_id == module_id)
               .first())
        return module_progress_to_domain(row) if row else None

    def count_completed_modules(self, user_id: int) -> int:
        return self.db.scalar(
            select(func.count())
            .select_from(UserProgressORM)
            .where(UserProgressORM.user_id == user_id, UserProgressORM.completed.is_(True))
        ) or 0

    def list_module_progress(self, user_id: int) -> list[ModuleProgress]:
        rows = (self.db.query(UserProgressORM)
                .populate_existing()
                .options(joinedload(UserProgressORM.module))
                .filter(UserProgressORM.user_id == user_id)
                .order_by(UserProgressORM.module_id)
                .all())
        return [module_progress_to_domain(r, with_module=True) for r in rows]


class GameRepository(IGameRepository):
    def __init__(self, db: Session): self.db = db

    def list_games(self) -> list[Game]:
        return [game_to_domain(g) for g in self.db.query(GameORM).order_by(GameORM.id).all()]

    def get_game(self, game_id: int) -> Game | None:
        row = self.db.get(GameORM, game_id)
        return game_to_domain(row) if row else None

    def add_score(self, user_id: int, game_id: int, score: int, at: datetime) -> GameScore:
        row = GameScoreORM(user_id=user_id, game_id=game_id, score=score, played_at=at)
        self.db.add(row); self.db.flush(); self.db.refresh(row)
        return score_to_domain(row, with_game=True)

    def count_plays(self, user_id: int) -> int:
        return self.db.scalar(
            select(func.count()).select_from(GameScoreORM).where(GameScoreORM.user_id == user_id)
        ) or 0

    def count_distinct_games(self, user_id: int) -> int:
        return self.db.scalar(
            select(func.count(distinct(GameScoreORM.game_id))).where(GameScoreORM.user_id == user_id)
        ) or 0

    def total_score(self, user_id: int) -> int:
        return self.db.scalar(
            select(func.coalesce(func.sum(GameScoreORM.score), 0)).where(GameScoreORM.user_id == user_id)
        ) or 0

    def high_scores(self, user_id: int, limit: int) -> list[dict]:
        high_score = func.max(GameScoreORM.score).label("high_score")
        q = (select(GameORM.id, GameORM.name, high_score)
             .join(GameScoreORM, GameScoreORM.game_id == GameORM.id)
             .where(GameScoreORM.user_id == user_id)
             .group_by(GameORM.id, GameORM.name)
             .order_by(high_score.desc(), GameORM.id)
             .limit(limit))
        return [{"id": r[0], "name": r[1], "high_score": r[2]} for r in self.db.execute(q).all()]

    def recent_scores(self, user_id: int, limit: int) -> list[GameScore]:
        rows = (self.db.query(GameScoreORM)
                .options(joinedload(GameScoreORM.game))
                .filter(GameScoreORM.user_id == user_id)
                .order_by(GameScoreORM.played_at.desc(), GameScoreORM.id.desc())
                .limit(limit)
                .all())
        return [score_to_domain(r, with_game=True) for r in rows]

    def leaderboard(self, game_id: int, limit: int) -> list[dict]:
        # при равенстве очков порядок отправки (id по возрастанию)
        q = (select(GameScoreORM.id, GameScoreORM.user_id, GameScoreORM.score, GameScoreORM.played_at,
                    UserORM.username, UserORM.display_name, UserORM.avatar_url)
             .join(UserORM, UserORM.id == GameScoreORM.user_id)
             .where(GameScoreORM.game_id == game_id)
             .order_by(GameScoreORM.score.desc(), GameScoreORM.id.asc())
             .limit(limit))
        return [
            {"id": r[0], "user_id": r[1], "score": r[2], "played_at": r[3],
             "username": r[4], "display_name": r[5], "avatar_url": r[6]}
            for r in self.db.execute(q).all()
        ]


class AchievementRepository(IAchievementRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_code(self, code: str) -> Achievement | None:
        row = self.db.query(AchievementORM).filter(AchievementORM.code == code).first()
        return achievement_to_domain(row) if row else None

    def award(self, user_id: int, achievement_id: int, at: datetime) -> bool:
        return insert_if_absent(
            self.db, UserAchievementORM,
            {"user_id": user_id, "achievement_id": achievement_id, "earned_at": at},
            ["user_id", "achievement_id"],
        )

    def count_for_user(self, user_id: int, since: datetime | None = None) -> int:
        q = select(func.count()).select_from(UserAchievementORM).where(UserAchievementORM.user_id == user_id)
        if since is not None:
            q = q.where(UserAchievementORM.earned_at >= since)
        return self.db.scalar(q) or 0

    def list_for_user(self, user_id: int, limit: int | None = None) -> list[EarnedAchievement]:
        q = (self.db.query(UserAchievementORM)
             .options(joinedload(UserAchievementORM.achievement))
             .filter(UserAchievementORM.user_id == user_id)
             .order_by(UserAchievementORM.earned_at.desc(), UserAchievementORM.id.desc()))
        if limit is not None:
            q = q.limit(limit)
        return [EarnedAchievement(achievement=achievement_to_domain(r.achievement), earned_at=r.earned_at)
                for r in q.all()]


class ProjectRepository(IProjectRepository):
    FIELDS = ("name", "language", "description", "code_content", "status")

    def __init__(self, db: Session): self.db = db

    def _row(self, user_id: int, project_id: int) -> ProjectORM | None:
        return (self.db.query(ProjectORM)
                .filter(ProjectORM.id == project_id, ProjectORM.user_id == user_id)
                .first())

    def list_for_user(self, user_id: int, limit: int | None = None) -> list[Project]:
        q = (self.db.query(ProjectORM)
             .filter(ProjectORM.user_id == user_id)
             .order_by(ProjectORM.updated_at.desc(), ProjectORM.id.desc()))
        if limit is not None:
            q = q.limit(limit)
        return [project_to_domain(p) for p in q.all()]

    def get(self, user_id: int, project_id: int) -> Project | None:
        row = self._row(user_id, project_id)
        return project_to_domain(row) if row else None

    def create(self, user_id: int, **fields) -> Project:
        now = utcnow()
        values = {k: v for k, v in fields.items() if k in self.FIELDS and v is not None}
        row = ProjectORM(user_id=user_id, created_at=now, updated_at=now, **values)
        self.db.add(row); self.db.flush(); self.db.refresh(row)
        return project_to_domain(row)

    def update(self, user_id: int, project_id: int, **fields) -> Project | None:
        row = self._row(user_id, project_id)
        if not row:
            return None
        for key, value in fields.items():
            if key in self.FIELDS and value is not None:
                setattr(row, key, value)
        row.updated_at = utcnow()
        self.db.flush(); self.db.refresh(row)
        return project_to_domain(row)

    def delete(self, user_id: int, project_id: int) -> bool:
        row = self._row(user_id, project_id)
        if not row:
            return False
        self.db.delete(row); self.db.flush()
        return True

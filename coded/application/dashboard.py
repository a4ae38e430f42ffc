from dataclasses import dataclass
from datetime import timedelta

from ..domain.clock import format_time_ago, utcnow
from ..domain.entities import RequestContext
from ..domain.rewards import compute_level, progress_percentage
from .ports import (
    IAchievementRepository,
    IContentRepository,
    IGameRepository,
    IProgressRepository,
    IProjectRepository,
)

NEW_ACHIEVEMENT_WINDOW = timedelta(days=30)
RECENT_ITEMS = 4


@dataclass(frozen=True)
class DashboardStats:
    progress_percentage: int = 0
    xp_points: int = 0
    level: int = 1
    login_streak: int = 0
    achievement_count: int = 0
    new_achievements: int = 0


class DashboardAggregator:
    """Сводка для дашборда. Только чтение; анонимному пользователю нули и пустые списки."""

    def __init__(
        self,
        content: IContentRepository,
        progress: IProgressRepository,
        achievements: IAchievementRepository,
        games: IGameRepository,
        projects: IProjectRepository,
    ):
        self.content = content
        self.progress = progress
        self.achievements = achievements
        self.games = games
        self.projects = projects

    def get_dashboard_stats(self, ctx: RequestContext) -> DashboardStats:
        if not ctx.is_authenticated:
            return DashboardStats()
        user = ctx.user

        module_count = self.content.count_modules()
        completed_modules = self.progress.count_completed_modules(user.id)
        since = utcnow() - NEW_ACHIEVEMENT_WINDOW

        return DashboardStats(
            progress_percentage=progress_percentage(completed_modules, module_count),
            xp_points=user.xp_points or 0,
            level=compute_level(user.xp_points or 0),
            login_streak=user.login_streak or 0,
            achievement_count=self.achievements.count_for_user(user.id),
            new_achievements=self.achievements.count_for_user(user.id, since=since),
        )

    def get_learning_progress(self, ctx: RequestContext) -> list[dict]:
        if not ctx.is_authenticated:
            return []
        return [
            {"name": item.module.language, "progress": item.progress_percentage}
            for item in self.progress.list_module_progress(ctx.user.id)
        ]

    def get_recent_achievements(self, ctx: RequestContext) -> list[dict]:
        if not ctx.is_authenticated:
            return []
        return [
            {
                "id": item.achievement.id,
                "name": item.achievement.name,
                "description": item.achievement.description or "",
                "icon": item.achievement.icon_name or "Award",
                "date": format_time_ago(item.earned_at),
            }
            for item in self.achievements.list_for_user(ctx.user.id, RECENT_ITEMS)
        ]

    def get_recent_games(self, ctx: RequestContext) -> list[dict]:
        if not ctx.is_authenticated:
            return []
        return [
            {
                "id": item.game.id,
                "name": item.game.name,
                "score": item.score,
                "date": format_time_ago(item.played_at),
                "icon": item.game.icon_name or "Gamepad",
            }
            for item in self.games.recent_scores(ctx.user.id, RECENT_ITEMS)
        ]

    def get_saved_projects(self, ctx: RequestContext) -> list[dict]:
        if not ctx.is_authenticated:
            return []
        return [
            {
                "id": project.id,
                "name": project.name,
                "language": project.language,
                "last_edited": format_time_ago(project.updated_at),
                "status": project.status,
            }
            for project in self.projects.list_for_user(ctx.user.id, RECENT_ITEMS)
        ]

from dataclasses import dataclass

import structlog

from ..domain.clock import utcnow
from ..domain.entities import LessonProgress, ModuleProgress, RequestContext
from ..domain.errors import NotFound
from ..domain.rewards import (
    LESSON_COMPLETION_XP,
    MODULE_COMPLETION_XP,
    AchievementContext,
    progress_percentage,
)
from ..infrastructure.metrics import lessons_completed_total
from .ports import IContentRepository, IProgressRepository
from .reward_engine import RewardEngine

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ModuleProgressSummary:
    total_lessons: int
    completed_lessons: int
    progress_percentage: int
    lesson_progress: list[LessonProgress]


class ProgressLedger:
    """Прохождение уроков и модулей пользователем.

    Все шаги идемпотентны: повтор после сбоя сходится к тому же состоянию,
    разовые награды привязаны к первому переходу (урок пройден, модуль 100%).
    """

    def __init__(self, content: IContentRepository, progress: IProgressRepository, rewards: RewardEngine):
        self.content = content
        self.progress = progress
        self.rewards = rewards

    def _require_lesson(self, lesson_id: int):
        lesson = self.content.get_lesson(lesson_id)
        if lesson is None:
            raise NotFound("Lesson not found")
        return lesson

    def mark_lesson_completed(self, ctx: RequestContext, lesson_id: int) -> LessonProgress:
        user = ctx.require_user()
        lesson = self._require_lesson(lesson_id)

        first_time = self.progress.complete_lesson(user.id, lesson_id, utcnow())
        if first_time:
            lessons_completed_total.inc()
            logger.info("lesson_completed", user_id=user.id, lesson_id=lesson_id, module_id=lesson.module_id)

        self.compute_module_progress(user.id, lesson.module_id)

        if first_time:
            self.rewards.grant_xp(user.id, LESSON_COMPLETION_XP, reason="lesson")

        self.rewards.evaluate_achievements(user.id, AchievementContext(
            lessons_completed=self.progress.count_completed_lessons(user.id),
            modules_completed=self.progress.count_completed_modules(user.id),
        ))
        return self.progress.get_lesson_progress(user.id, lesson_id)

    def update_lesson_position(self, ctx: RequestContext, lesson_id: int, position: int) -> LessonProgress:
        user = ctx.require_user()
        self._require_lesson(lesson_id)
        self.progress.set_lesson_position(user.id, lesson_id, position)
        return self.progress.get_lesson_progress(user.id, lesson_id)

    def compute_module_progress(self, user_id: int, module_id: int) -> int:
        lesson_ids = [lesson.id for lesson in self.content.list_lessons(module_id)]
        completed = self.progress.count_completed_lessons(user_id, lesson_ids)
        percentage = progress_percentage(completed, len(lesson_ids))

        if self.progress.save_module_progress(user_id, module_id, percentage, utcnow()):
            logger.info("module_completed", user_id=user_id, module_id=module_id)
            self.rewards.grant_xp(user_id, MODULE_COMPLETION_XP, reason="module")
        return percentage

    def get_module_progress(self, ctx: RequestContext, module_id: int) -> ModuleProgressSummary | None:
        if not ctx.is_authenticated:
            return None
        lesson_ids = [lesson.id for lesson in self.content.list_lessons(module_id)]
        rows = self.progress.list_lesson_progress(ctx.user.id, lesson_ids)
        completed = sum(1 for r in rows if r.is_completed)
        return ModuleProgressSummary(
            total_lessons=len(lesson_ids),
            completed_lessons=completed,
            progress_percentage=progress_percentage(completed, len(lesson_ids)),
            lesson_progress=rows,
        )

    def get_lesson_progress(self, ctx: RequestContext, lesson_id: int) -> LessonProgress | None:
        if not ctx.is_authenticated:
            return None
        return self.progress.get_lesson_progress(ctx.user.id, lesson_id)

    def get_all_progress(self, ctx: RequestContext) -> list[ModuleProgress]:
        if not ctx.is_authenticated:
            return []
        return self.progress.list_module_progress(ctx.user.id)

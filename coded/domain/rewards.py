"""Правила начисления опыта и достижений.

Чистые функции без доступа к БД: уровень, процент прохождения модуля,
проверка условий достижений.
"""
from dataclasses import dataclass
from enum import Enum

XP_PER_LEVEL = 1000
LESSON_COMPLETION_XP = 50
MODULE_COMPLETION_XP = 200
SCORE_POINTS_PER_XP = 10
HIGH_SCORE_THRESHOLD = 1000


class AchievementCode(str, Enum):
    FIRST_GAME = "FIRST_GAME"
    GAME_MASTER = "GAME_MASTER"
    HIGH_SCORER = "HIGH_SCORER"
    DEDICATED_PLAYER = "DEDICATED_PLAYER"
    FIRST_LESSON = "FIRST_LESSON"
    FIVE_LESSONS = "FIVE_LESSONS"
    FIRST_MODULE = "FIRST_MODULE"


@dataclass(frozen=True)
class AchievementContext:
    """Снимок счётчиков после события. None означает "не относится к событию"."""

    games_played: int | None = None
    distinct_games: int | None = None
    score: int | None = None
    lessons_completed: int | None = None
    modules_completed: int | None = None


def _equals(value: int | None, target: int) -> bool:
    # порог срабатывает только при точном совпадении, перескок через него не считается
    return value is not None and value == target


def _at_least(value: int | None, target: int) -> bool:
    return value is not None and value >= target


RULES = (
    (AchievementCode.FIRST_GAME, lambda c: _equals(c.games_played, 1)),
    (AchievementCode.GAME_MASTER, lambda c: _equals(c.distinct_games, 5)),
    (AchievementCode.HIGH_SCORER, lambda c: _at_least(c.score, HIGH_SCORE_THRESHOLD)),
    (AchievementCode.DEDICATED_PLAYER, lambda c: _equals(c.games_played, 10)),
    (AchievementCode.FIRST_LESSON, lambda c: _equals(c.lessons_completed, 1)),
    (AchievementCode.FIVE_LESSONS, lambda c: _equals(c.lessons_completed, 5)),
    (AchievementCode.FIRST_MODULE, lambda c: _equals(c.modules_completed, 1)),
)


def qualifying_achievements(context: AchievementContext) -> list[AchievementCode]:
    return [code for code, rule in RULES if rule(context)]


def compute_level(xp_points: int) -> int:
    return (xp_points or 0) // XP_PER_LEVEL + 1


def xp_for_score(score: int) -> int:
    return score // SCORE_POINTS_PER_XP


def progress_percentage(completed: int, total: int) -> int:
    """Округлённый процент (половина вверх); 0, если делить не на что."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)

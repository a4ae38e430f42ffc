import structlog
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..domain.rewards import AchievementCode
from .models import AchievementORM, GameORM
from .repositories import insert_if_absent

logger = structlog.get_logger(__name__)

ACHIEVEMENTS = [
    (AchievementCode.FIRST_GAME, "First Game", "Play your first coding game", "Gamepad", 50),
    (AchievementCode.GAME_MASTER, "Game Master", "Play 5 different games", "Trophy", 250),
    (AchievementCode.HIGH_SCORER, "High Scorer", "Score 1000 points in a single game", "Star", 150),
    (AchievementCode.DEDICATED_PLAYER, "Dedicated Player", "Play 10 games", "Flame", 200),
    (AchievementCode.FIRST_LESSON, "First Lesson", "Complete your first lesson", "BookOpen", 50),
    (AchievementCode.FIVE_LESSONS, "Five Lessons", "Complete 5 lessons", "Award", 100),
    (AchievementCode.FIRST_MODULE, "First Module", "Complete your first module", "GraduationCap", 200),
]

GAMES = [
    ("Debug Challenge", "Find and fix bugs in code snippets", "Bug"),
    ("Syntax Quiz", "Answer questions about language syntax", "HelpCircle"),
    ("Algorithm Challenge", "Solve classic algorithm problems", "Cpu"),
    ("Code Completion", "Fill in the missing code", "Code"),
]


def seed_reference_data(db: Session) -> None:
    """Справочники достижений и игр. Повторный запуск ничего не дублирует."""
    added = 0
    for code, name, description, icon, xp_reward in ACHIEVEMENTS:
        added += insert_if_absent(
            db, AchievementORM,
            {"code": code.value, "name": name, "description": description,
             "icon_name": icon, "xp_reward": xp_reward},
            ["code"],
        )

    if not db.scalar(select(func.count()).select_from(GameORM)):
        for name, description, icon in GAMES:
            db.add(GameORM(name=name, description=description, icon_name=icon))
    db.commit()
    logger.info("reference_data_seeded", achievements_added=added)

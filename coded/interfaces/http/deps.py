from fastapi import Depends
from sqlalchemy.orm import Session

from ...application.dashboard import DashboardAggregator
from ...application.game_scoring import GameScoringService
from ...application.progress_ledger import ProgressLedger
from ...application.reward_engine import RewardEngine
from ...infrastructure.db import get_db
from ...infrastructure.repositories import (
    AchievementRepository,
    ContentRepository,
    GameRepository,
    ProgressRepository,
    ProjectRepository,
    UserRepository,
)


def get_reward_engine(db: Session = Depends(get_db)) -> RewardEngine:
    return RewardEngine(UserRepository(db), AchievementRepository(db))


def get_progress_ledger(
    db: Session = Depends(get_db),
    rewards: RewardEngine = Depends(get_reward_engine),
) -> ProgressLedger:
    return ProgressLedger(ContentRepository(db), ProgressRepository(db), rewards)


def get_game_scoring(
    db: Session = Depends(get_db),
    rewards: RewardEngine = Depends(get_reward_engine),
) -> GameScoringService:
    return GameScoringService(GameRepository(db), rewards)


def get_dashboard(db: Session = Depends(get_db)) -> DashboardAggregator:
    return DashboardAggregator(
        ContentRepository(db),
        ProgressRepository(db),
        AchievementRepository(db),
        GameRepository(db),
        ProjectRepository(db),
    )

from datetime import timedelta

import pytest
from sqlalchemy import select

from coded.application.dashboard import DashboardAggregator, DashboardStats
from coded.application.game_scoring import GameScoringService
from coded.application.progress_ledger import ProgressLedger
from coded.application.reward_engine import RewardEngine
from coded.domain.clock import utcnow
from coded.domain.entities import RequestContext
from coded.infrastructure.models import AchievementORM, UserAchievementORM
from coded.infrastructure.repositories import (
    AchievementRepository,
    ContentRepository,
    GameRepository,
    ProgressRepository,
    ProjectRepository,
    UserRepository,
)


@pytest.fixture
def dashboard(db):
    return DashboardAggregator(
        ContentRepository(db),
        ProgressRepository(db),
        AchievementRepository(db),
        GameRepository(db),
        ProjectRepository(db),
    )


@pytest.fixture
def rewards(db):
    return RewardEngine(UserRepository(db), AchievementRepository(db))


def fresh(db, ctx: RequestContext) -> RequestContext:
    """Контекст с актуальной строкой пользователя, как в новом запросе"""
    return RequestContext(user=UserRepository(db).get(ctx.user.id))


def test_anonymous_dashboard(dashboard):
    """Анонимный пользователь получает нули и пустые списки"""
    anon = RequestContext()
    assert dashboard.get_dashboard_stats(anon) == DashboardStats(0, 0, 1, 0, 0, 0)
    assert dashboard.get_learning_progress(anon) == []
    assert dashboard.get_recent_achievements(anon) == []
    assert dashboard.get_recent_games(anon) == []
    assert dashboard.get_saved_projects(anon) == []


def test_new_user_stats(dashboard, make_user, make_module):
    make_module(lessons=2)
    stats = dashboard.get_dashboard_stats(make_user())
    assert stats.progress_percentage == 0
    assert stats.xp_points == 0
    assert stats.level == 1
    assert stats.achievement_count == 0


def test_stats_after_learning(db, dashboard, rewards, make_user, make_module):
    ctx = make_user()
    module_id, lesson_ids = make_module(lessons=1)
    make_module(lessons=1)
    make_module(lessons=1)
    ledger = ProgressLedger(ContentRepository(db), ProgressRepository(db), rewards)
    ledger.mark_lesson_completed(ctx, lesson_ids[0])
    db.commit()

    stats = dashboard.get_dashboard_stats(fresh(db, ctx))
    # 1 из 3 модулей
    assert stats.progress_percentage == 33
    assert stats.xp_points == 50 + 200 + 50 + 200
    assert stats.level == 1
    assert stats.achievement_count == 2
    assert stats.new_achievements == 2

    assert dashboard.get_learning_progress(ctx) == [{"name": "python", "progress": 100}]


def test_level_from_xp(db, dashboard, rewards, make_user):
    ctx = make_user()
    rewards.grant_xp(ctx.user.id, 2500)
    db.commit()
    stats = dashboard.get_dashboard_stats(fresh(db, ctx))
    assert stats.xp_points == 2500
    assert stats.level == 3


def test_new_achievements_window(db, dashboard, make_user):
    """В новые попадают только достижения за последние 30 дней"""
    ctx = make_user()
    old = db.scalar(select(AchievementORM).where(AchievementORM.code == "FIRST_GAME"))
    recent = db.scalar(select(AchievementORM).where(AchievementORM.code == "FIRST_LESSON"))
    db.add(UserAchievementORM(user_id=ctx.user.id, achievement_id=old.id,
                              earned_at=utcnow() - timedelta(days=40)))
    db.add(UserAchievementORM(user_id=ctx.user.id, achievement_id=recent.id,
                              earned_at=utcnow() - timedelta(days=2)))
    db.commit()

    stats = dashboard.get_dashboard_stats(ctx)
    assert stats.achievement_count == 2
    assert stats.new_achievements == 1

    items = dashboard.get_recent_achievements(ctx)
    assert [item["name"] for item in items] == [recent.name, old.name]
    assert items[0]["date"] == "2 days ago"
    assert items[1]["date"] == "1 months ago"


def test_recent_games(db, dashboard, rewards, make_user):
    ctx = make_user()
    scoring = GameScoringService(GameRepository(db), rewards)
    for game_id in (1, 2, 3, 4, 1):
        scoring.submit_score(ctx, game_id, 10 * game_id)
    db.commit()

    games = dashboard.get_recent_games(ctx)
    assert len(games) == 4
    assert games[0]["name"] == "Debug Challenge"
    assert games[0]["date"] == "Just now"
    assert games[0]["icon"] == "Bug"


def test_saved_projects(db, dashboard, make_user):
    ctx = make_user()
    repo = ProjectRepository(db)
    for i in range(5):
        repo.create(ctx.user.id, name=f"Project {i}", language="python")
    db.commit()

    projects = dashboard.get_saved_projects(ctx)
    assert len(projects) == 4
    assert projects[0]["name"] == "Project 4"
    assert projects[0]["status"] == "In Progress"
    assert projects[0]["last_edited"] == "Just now"

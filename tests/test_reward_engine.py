import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from coded.application.reward_engine import RewardEngine
from coded.domain.clock import utcnow
from coded.domain.entities import RequestContext
from coded.domain.errors import ValidationFailed
from coded.domain.rewards import AchievementCode, AchievementContext
from coded.infrastructure.models import AchievementORM, GameORM, UserAchievementORM
from coded.infrastructure.repositories import AchievementRepository, UserRepository
from coded.infrastructure.seed import seed_reference_data


@pytest.fixture
def rewards(db):
    return RewardEngine(UserRepository(db), AchievementRepository(db))


def earned_count(db, user_id: int) -> int:
    return db.scalar(
        select(func.count()).select_from(UserAchievementORM).where(UserAchievementORM.user_id == user_id)
    )


def test_grant_xp(db, rewards, make_user, xp):
    """Начисление опыта увеличивает счётчик"""
    user = make_user().user
    rewards.grant_xp(user.id, 120, reason="test")
    rewards.grant_xp(user.id, 30, reason="test")
    db.commit()
    assert xp(db, user.id) == 150


def test_grant_zero_xp_is_noop(db, rewards, make_user, xp):
    user = make_user().user
    rewards.grant_xp(user.id, 0)
    assert xp(db, user.id) == 0


def test_grant_negative_xp_rejected(db, rewards, make_user, xp):
    """Опыт не может уменьшаться"""
    user = make_user().user
    with pytest.raises(ValidationFailed) as exc:
        rewards.grant_xp(user.id, -10)
    assert "amount" in exc.value.errors
    assert xp(db, user.id) == 0


def test_award_achievement_once(db, rewards, make_user, xp):
    """Повторная выдача не создаёт вторую запись и не даёт опыт второй раз"""
    user = make_user().user
    assert rewards.award_achievement(user.id, AchievementCode.FIRST_GAME) is True
    assert rewards.award_achievement(user.id, "FIRST_GAME") is False
    db.commit()

    assert earned_count(db, user.id) == 1
    assert xp(db, user.id) == 50


def test_award_in_later_session_is_noop(db, make_user, xp, session_factory):
    """Сессия, открытая после фиксации первой выдачи, ничего не получает"""
    user = make_user().user
    first = session_factory()
    try:
        engine = RewardEngine(UserRepository(first), AchievementRepository(first))
        assert engine.award_achievement(user.id, AchievementCode.HIGH_SCORER) is True
        first.commit()
    finally:
        first.close()

    second = session_factory()
    try:
        engine = RewardEngine(UserRepository(second), AchievementRepository(second))
        assert engine.award_achievement(user.id, AchievementCode.HIGH_SCORER) is False
        second.commit()
    finally:
        second.close()

    assert earned_count(db, user.id) == 1
    assert xp(db, user.id) == 150


def test_award_overlapping_sessions(db, make_user, xp, session_factory):
    """Обе сессии начались до фиксации любой из них: запись и опыт выдаются один раз"""
    user = make_user().user
    first, second = session_factory(), session_factory()
    try:
        # обе успели прочитать справочник до выдачи
        assert AchievementRepository(first).get_by_code("HIGH_SCORER") is not None
        assert AchievementRepository(second).get_by_code("HIGH_SCORER") is not None

        first_engine = RewardEngine(UserRepository(first), AchievementRepository(first))
        second_engine = RewardEngine(UserRepository(second), AchievementRepository(second))
        assert first_engine.award_achievement(user.id, AchievementCode.HIGH_SCORER) is True
        # первая ещё не зафиксирована, вставку второй отсекает уникальный индекс
        assert second_engine.award_achievement(user.id, AchievementCode.HIGH_SCORER) is False

        first.commit()
        second.commit()
    finally:
        first.close()
        second.close()

    assert earned_count(db, user.id) == 1
    assert xp(db, user.id) == 150


def test_duplicate_achievement_rejected_by_storage(db, make_user):
    """Уникальность (user_id, achievement_id) держит сама БД"""
    user = make_user().user
    achievement = db.scalar(select(AchievementORM).where(AchievementORM.code == "FIRST_LESSON"))
    db.add(UserAchievementORM(user_id=user.id, achievement_id=achievement.id, earned_at=utcnow()))
    db.commit()

    db.add(UserAchievementORM(user_id=user.id, achievement_id=achievement.id, earned_at=utcnow()))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_award_unknown_achievement(db, rewards, make_user, xp):
    """Достижение, которого нет в справочнике, не выдаётся"""
    user = make_user().user
    db.query(AchievementORM).filter(AchievementORM.code == "FIRST_MODULE").delete()
    db.commit()

    assert rewards.award_achievement(user.id, AchievementCode.FIRST_MODULE) is False
    assert earned_count(db, user.id) == 0
    assert xp(db, user.id) == 0


def test_evaluate_achievements(db, rewards, make_user, xp):
    user = make_user().user
    awarded = rewards.evaluate_achievements(user.id, AchievementContext(games_played=1, distinct_games=1, score=1500))
    db.commit()

    assert awarded == [AchievementCode.FIRST_GAME, AchievementCode.HIGH_SCORER]
    assert xp(db, user.id) == 50 + 150

    # повтор с тем же снимком ничего не добавляет
    assert rewards.evaluate_achievements(user.id, AchievementContext(games_played=1, score=1500)) == []
    assert xp(db, user.id) == 200


def test_list_achievements(db, rewards, make_user):
    ctx = make_user()
    rewards.award_achievement(ctx.user.id, AchievementCode.FIRST_LESSON)
    rewards.award_achievement(ctx.user.id, AchievementCode.FIRST_GAME)
    db.commit()

    earned = rewards.list_achievements(ctx)
    assert {item.achievement.code for item in earned} == {"FIRST_LESSON", "FIRST_GAME"}
    assert len(rewards.list_achievements(ctx, limit=1)) == 1


def test_list_achievements_anonymous(rewards):
    assert rewards.list_achievements(RequestContext()) == []


def test_seed_is_idempotent(db):
    """Повторное заполнение справочников ничего не дублирует"""
    seed_reference_data(db)
    seed_reference_data(db)
    assert db.scalar(select(func.count()).select_from(AchievementORM)) == len(AchievementCode)
    assert db.scalar(select(func.count()).select_from(GameORM)) == 4

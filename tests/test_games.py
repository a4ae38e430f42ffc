import pytest

from coded.application.game_scoring import GameScoringService
from coded.application.reward_engine import RewardEngine
from coded.domain.entities import RequestContext
from coded.domain.errors import NotFound, Unauthenticated, ValidationFailed
from coded.infrastructure.models import GameORM
from coded.infrastructure.repositories import AchievementRepository, GameRepository, UserRepository


@pytest.fixture
def scoring(db):
    return GameScoringService(GameRepository(db), RewardEngine(UserRepository(db), AchievementRepository(db)))


def codes_of(db, user_id: int) -> set[str]:
    return {item.achievement.code for item in AchievementRepository(db).list_for_user(user_id)}


def test_seeded_games(scoring):
    """Справочник игр заполнен при старте"""
    names = [g.name for g in scoring.list_games()]
    assert names == ["Debug Challenge", "Syntax Quiz", "Algorithm Challenge", "Code Completion"]


def test_get_unknown_game(scoring):
    with pytest.raises(NotFound):
        scoring.get_game(999)


def test_challenges(scoring):
    assert len(scoring.get_game_challenges(1)) > 0
    assert scoring.get_game_challenges(999) == []


def test_submit_first_high_score(db, scoring, make_user, xp):
    """1234 очка: 123 XP, FIRST_GAME и HIGH_SCORER"""
    ctx = make_user()
    result = scoring.submit_score(ctx, 1, 1234)
    db.commit()

    assert result.score == 1234
    assert result.game.name == "Debug Challenge"
    assert xp(db, ctx.user.id) == 123 + 50 + 150
    assert codes_of(db, ctx.user.id) == {"FIRST_GAME", "HIGH_SCORER"}


def test_second_play_does_not_repeat_first_game(db, scoring, make_user, xp):
    ctx = make_user()
    scoring.submit_score(ctx, 1, 100)
    scoring.submit_score(ctx, 2, 100)
    db.commit()

    assert codes_of(db, ctx.user.id) == {"FIRST_GAME"}
    assert xp(db, ctx.user.id) == 10 + 10 + 50


def test_zero_score_allowed(db, scoring, make_user, xp):
    ctx = make_user()
    result = scoring.submit_score(ctx, 1, 0)
    db.commit()
    assert result.score == 0
    # только FIRST_GAME
    assert xp(db, ctx.user.id) == 50


def test_negative_score_rejected(db, scoring, make_user):
    ctx = make_user()
    with pytest.raises(ValidationFailed):
        scoring.submit_score(ctx, 1, -5)
    assert GameRepository(db).count_plays(ctx.user.id) == 0


def test_submit_unknown_game(scoring, make_user):
    with pytest.raises(NotFound):
        scoring.submit_score(make_user(), 999, 10)


def test_submit_anonymous(scoring):
    with pytest.raises(Unauthenticated):
        scoring.submit_score(RequestContext(), 1, 10)


def test_dedicated_player(db, scoring, make_user):
    """Десятая игра даёт DEDICATED_PLAYER"""
    ctx = make_user()
    for _ in range(9):
        scoring.submit_score(ctx, 1, 10)
    assert "DEDICATED_PLAYER" not in codes_of(db, ctx.user.id)

    scoring.submit_score(ctx, 1, 10)
    db.commit()
    assert "DEDICATED_PLAYER" in codes_of(db, ctx.user.id)


def test_game_master(db, scoring, make_user):
    """Пять разных игр дают GAME_MASTER"""
    db.add(GameORM(name="Refactor Rush", description="", icon_name="Wrench"))
    db.commit()
    ctx = make_user()
    for game in scoring.list_games():
        scoring.submit_score(ctx, game.id, 10)
    db.commit()
    assert "GAME_MASTER" in codes_of(db, ctx.user.id)


def test_leaderboard_order(db, scoring, make_user):
    """Сортировка по очкам, при равенстве раньше отправленный выше"""
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    scoring.submit_score(alice, 1, 50)
    first_ninety = scoring.submit_score(bob, 1, 90)
    second_ninety = scoring.submit_score(carol, 1, 90)
    scoring.submit_score(alice, 1, 30)
    scoring.submit_score(bob, 2, 500)
    db.commit()

    board = scoring.get_leaderboard(1)
    assert [row["score"] for row in board] == [90, 90, 50, 30]
    assert [row["id"] for row in board[:2]] == [first_ninety.id, second_ninety.id]
    assert [row["username"] for row in board] == ["bob", "carol", "alice", "alice"]


def test_leaderboard_limit(db, scoring, make_user):
    ctx = make_user()
    for score in range(12):
        scoring.submit_score(ctx, 1, score)
    db.commit()
    board = scoring.get_leaderboard(1)
    assert len(board) == 10
    assert board[0]["score"] == 11


def test_user_stats(db, scoring, make_user):
    ctx = make_user()
    scoring.submit_score(ctx, 1, 100)
    scoring.submit_score(ctx, 1, 300)
    scoring.submit_score(ctx, 2, 200)
    scoring.submit_score(ctx, 3, 50)
    scoring.submit_score(ctx, 4, 10)
    scoring.submit_score(ctx, 4, 20)
    db.commit()

    stats = scoring.get_user_stats(ctx)
    assert stats.games_played == 6
    assert stats.total_score == 680
    assert [(h["id"], h["high_score"]) for h in stats.high_scores] == [(1, 300), (2, 200), (3, 50)]
    assert len(stats.recent_games) == 5


def test_user_stats_anonymous(scoring):
    assert scoring.get_user_stats(RequestContext()) is None

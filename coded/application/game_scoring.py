from dataclasses import dataclass, field

import structlog

from ..domain.clock import utcnow
from ..domain.entities import Game, GameScore, RequestContext
from ..domain.errors import NotFound, ValidationFailed
from ..domain.rewards import AchievementContext, xp_for_score
from ..infrastructure.metrics import game_scores_submitted_total
from .challenges import CHALLENGES
from .ports import IGameRepository
from .reward_engine import RewardEngine

logger = structlog.get_logger(__name__)

LEADERBOARD_SIZE = 10
TOP_SCORES = 3
RECENT_PLAYS = 5


@dataclass(frozen=True)
class UserGameStats:
    games_played: int = 0
    total_score: int = 0
    high_scores: list[dict] = field(default_factory=list)
    recent_games: list[GameScore] = field(default_factory=list)


class GameScoringService:
    def __init__(self, games: IGameRepository, rewards: RewardEngine):
        self.games = games
        self.rewards = rewards

    def list_games(self) -> list[Game]:
        return self.games.list_games()

    def get_game(self, game_id: int) -> Game:
        game = self.games.get_game(game_id)
        if game is None:
            raise NotFound("Game not found")
        return game

    @staticmethod
    def get_game_challenges(game_id: int) -> list[dict]:
        return CHALLENGES.get(game_id, [])

    def submit_score(self, ctx: RequestContext, game_id: int, score: int) -> GameScore:
        user = ctx.require_user()
        if score < 0:
            raise ValidationFailed({"score": ["Score must be non-negative"]})
        self.get_game(game_id)

        game_score = self.games.add_score(user.id, game_id, score, utcnow())
        game_scores_submitted_total.inc()
        logger.info("game_score_submitted", user_id=user.id, game_id=game_id, score=score)

        self.rewards.grant_xp(user.id, xp_for_score(score), reason="game")
        self.rewards.evaluate_achievements(user.id, AchievementContext(
            games_played=self.games.count_plays(user.id),
            distinct_games=self.games.count_distinct_games(user.id),
            score=score,
        ))
        return game_score

    def get_user_stats(self, ctx: RequestContext) -> UserGameStats | None:
        if not ctx.is_authenticated:
            return None
        user_id = ctx.user.id
        return UserGameStats(
            games_played=self.games.count_plays(user_id),
            total_score=self.games.total_score(user_id),
            high_scores=self.games.high_scores(user_id, TOP_SCORES),
            recent_games=self.games.recent_scores(user_id, RECENT_PLAYS),
        )

    def get_leaderboard(self, game_id: int) -> list[dict]:
        return self.games.leaderboard(game_id, LEADERBOARD_SIZE)

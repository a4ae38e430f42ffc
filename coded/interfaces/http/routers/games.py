from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....application.game_scoring import GameScoringService
from ....domain.entities import RequestContext
from ....infrastructure.cache import cached_json, delete_cache_pattern
from ....infrastructure.db import get_db
from ..authz import get_request_context, require_context
from ..deps import get_game_scoring
from ..schemas import GameOut, GameScoreOut, LeaderboardEntry, ScoreReq, UserGameStatsOut

router = APIRouter(prefix="/api/games", tags=["games"])


def leaderboard_key(game_id: int) -> str:
    return f"game:{game_id}:leaderboard"


@router.get("", response_model=list[GameOut])
def list_games(scoring: GameScoringService = Depends(get_game_scoring)):
    return cached_json("games:list", lambda: [
        GameOut.model_validate(g).model_dump(mode="json") for g in scoring.list_games()
    ])


# до /{game_id}, иначе "stats" уйдёт в game_id
@router.get("/stats/me", response_model=UserGameStatsOut | None)
def my_stats(
    ctx: RequestContext = Depends(get_request_context),
    scoring: GameScoringService = Depends(get_game_scoring),
):
    return scoring.get_user_stats(ctx)


@router.get("/{game_id}", response_model=GameOut)
def get_game(game_id: int, scoring: GameScoringService = Depends(get_game_scoring)):
    return scoring.get_game(game_id)


@router.get("/{game_id}/challenges")
def game_challenges(game_id: int, scoring: GameScoringService = Depends(get_game_scoring)):
    return scoring.get_game_challenges(game_id)


@router.get("/{game_id}/leaderboard", response_model=list[LeaderboardEntry])
def leaderboard(game_id: int, scoring: GameScoringService = Depends(get_game_scoring)):
    return cached_json(leaderboard_key(game_id), lambda: [
        LeaderboardEntry.model_validate(row).model_dump(mode="json")
        for row in scoring.get_leaderboard(game_id)
    ])


@router.post("/{game_id}/scores", response_model=GameScoreOut, status_code=status.HTTP_201_CREATED)
def submit_score(
    game_id: int,
    payload: ScoreReq,
    ctx: RequestContext = Depends(require_context),
    scoring: GameScoringService = Depends(get_game_scoring),
    db: Session = Depends(get_db),
):
    game_score = scoring.submit_score(ctx, game_id, payload.score)
    db.commit()
    # Инвалидируем кэш таблицы лидеров
    delete_cache_pattern(leaderboard_key(game_id))
    return game_score

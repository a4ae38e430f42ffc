from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.reward_engine import RewardEngine
from ....application.use_cases.profile import GetProfile, UpdateProfile
from ....domain.entities import RequestContext
from ....infrastructure.cache import delete_cache_pattern
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..authz import get_request_context, require_context
from ..deps import get_reward_engine
from ..schemas import AchievementOut, ProfileOut, ProfileUpdate

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("", response_model=ProfileOut | None)
def get_profile(ctx: RequestContext = Depends(get_request_context), db: Session = Depends(get_db)):
    return GetProfile(UserRepository(db)).execute(ctx)


@router.put("", response_model=ProfileOut)
def update_profile(
    payload: ProfileUpdate,
    ctx: RequestContext = Depends(require_context),
    db: Session = Depends(get_db),
):
    profile = UpdateProfile(UserRepository(db)).execute(ctx, payload.display_name, payload.avatar_url)
    db.commit()
    # в таблицах лидеров лежат имя и аватар игрока
    delete_cache_pattern("game:*:leaderboard")
    return profile


@router.get("/achievements", response_model=list[AchievementOut])
def my_achievements(
    ctx: RequestContext = Depends(get_request_context),
    rewards: RewardEngine = Depends(get_reward_engine),
):
    return [
        AchievementOut(
            code=item.achievement.code,
            name=item.achievement.name,
            description=item.achievement.description,
            icon_name=item.achievement.icon_name,
            xp_reward=item.achievement.xp_reward,
            earned_at=item.earned_at,
        )
        for item in rewards.list_achievements(ctx)
    ]

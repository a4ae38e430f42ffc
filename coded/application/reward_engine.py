import structlog

from ..domain.clock import utcnow
from ..domain.entities import EarnedAchievement, RequestContext
from ..domain.errors import ValidationFailed
from ..domain.rewards import AchievementCode, AchievementContext, compute_level, qualifying_achievements
from ..infrastructure.metrics import achievements_awarded_total, xp_granted_total
from .ports import IAchievementRepository, IUserRepository

logger = structlog.get_logger(__name__)


class RewardEngine:
    """Начисление опыта и выдача достижений.

    Опыт только растёт и меняется атомарным инкрементом в БД. Достижение
    выдаётся один раз: повторная выдача упирается в уникальный ключ
    (user_id, achievement_id) и не начисляет награду второй раз.
    """

    def __init__(self, users: IUserRepository, achievements: IAchievementRepository):
        self.users = users
        self.achievements = achievements

    def grant_xp(self, user_id: int, amount: int, reason: str = "other") -> None:
        if amount < 0:
            raise ValidationFailed({"amount": ["XP amount must be non-negative"]})
        if amount == 0:
            return
        self.users.increment_xp(user_id, amount)
        xp_granted_total.labels(reason=reason).inc(amount)
        logger.info("xp_granted", user_id=user_id, amount=amount, reason=reason)

    @staticmethod
    def compute_level(xp_points: int) -> int:
        return compute_level(xp_points)

    def award_achievement(self, user_id: int, code: AchievementCode | str) -> bool:
        code = AchievementCode(code).value
        achievement = self.achievements.get_by_code(code)
        if achievement is None:
            logger.warning("achievement_unknown", user_id=user_id, code=code)
            return False

        if not self.achievements.award(user_id, achievement.id, utcnow()):
            return False

        self.grant_xp(user_id, achievement.xp_reward, reason="achievement")
        achievements_awarded_total.labels(code=code).inc()
        logger.info("achievement_awarded", user_id=user_id, code=code, xp_reward=achievement.xp_reward)
        return True

    def evaluate_achievements(self, user_id: int, context: AchievementContext) -> list[AchievementCode]:
        awarded = []
        for code in qualifying_achievements(context):
            if self.award_achievement(user_id, code):
                awarded.append(code)
        return awarded

    def list_achievements(self, ctx: RequestContext, limit: int | None = None) -> list[EarnedAchievement]:
        if not ctx.is_authenticated:
            return []
        return self.achievements.list_for_user(ctx.user.id, limit)

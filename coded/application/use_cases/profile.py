from ...domain.entities import RequestContext
from ..ports import IUserRepository


class GetProfile:
    def __init__(self, repo: IUserRepository):
        self.repo = repo

    def execute(self, ctx: RequestContext) -> dict | None:
        if not ctx.is_authenticated:
            return None
        user = ctx.user
        return {
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "display_name": user.display_name or user.username,
            "avatar_url": user.avatar_url,
        }


class UpdateProfile:
    def __init__(self, repo: IUserRepository):
        self.repo = repo

    def execute(self, ctx: RequestContext, display_name: str, avatar_url: str | None = None) -> dict:
        user = ctx.require_user()
        # без нового аватара остаётся прежний
        updated = self.repo.update_profile(user.id, display_name, avatar_url or user.avatar_url)
        return GetProfile(self.repo).execute(RequestContext(user=updated))

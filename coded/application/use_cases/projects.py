from dataclasses import asdict

from ...domain.entities import Project, RequestContext
from ...domain.errors import NotFound
from ..dto import ProjectInput
from ..ports import IProjectRepository


class ProjectStore:
    """Проекты редактора кода. Каждый проект виден только владельцу."""

    def __init__(self, repo: IProjectRepository):
        self.repo = repo

    def list_projects(self, ctx: RequestContext) -> list[Project]:
        if not ctx.is_authenticated:
            return []
        return self.repo.list_for_user(ctx.user.id)

    def get_project(self, ctx: RequestContext, project_id: int) -> Project:
        user = ctx.require_user()
        project = self.repo.get(user.id, project_id)
        if project is None:
            raise NotFound("Project not found")
        return project

    def create_project(self, ctx: RequestContext, data: ProjectInput) -> Project:
        user = ctx.require_user()
        return self.repo.create(user.id, **asdict(data))

    def update_project(self, ctx: RequestContext, project_id: int, data: ProjectInput) -> Project:
        user = ctx.require_user()
        project = self.repo.update(user.id, project_id, **asdict(data))
        if project is None:
            raise NotFound("Project not found")
        return project

    def delete_project(self, ctx: RequestContext, project_id: int) -> None:
        user = ctx.require_user()
        if not self.repo.delete(user.id, project_id):
            raise NotFound("Project not found")

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....application.dto import ProjectInput
from ....application.use_cases.projects import ProjectStore
from ....domain.entities import RequestContext
from ....infrastructure.db import get_db
from ....infrastructure.repositories import ProjectRepository
from ..authz import get_request_context, require_context
from ..schemas import ProjectCreate, ProjectOut, ProjectUpdate

router = APIRouter(prefix="/api/projects", tags=["projects"])


def get_store(db: Session = Depends(get_db)) -> ProjectStore:
    return ProjectStore(ProjectRepository(db))


@router.get("", response_model=list[ProjectOut])
def list_projects(ctx: RequestContext = Depends(get_request_context), store: ProjectStore = Depends(get_store)):
    return store.list_projects(ctx)


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    ctx: RequestContext = Depends(require_context),
    store: ProjectStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    project = store.create_project(ctx, ProjectInput(**payload.model_dump()))
    db.commit()
    return project


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, ctx: RequestContext = Depends(require_context),
                store: ProjectStore = Depends(get_store)):
    return store.get_project(ctx, project_id)


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    ctx: RequestContext = Depends(require_context),
    store: ProjectStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    project = store.update_project(ctx, project_id, ProjectInput(**payload.model_dump()))
    db.commit()
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    ctx: RequestContext = Depends(require_context),
    store: ProjectStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    store.delete_project(ctx, project_id)
    db.commit()

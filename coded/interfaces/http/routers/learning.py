from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.progress_ledger import ProgressLedger
from ....application.use_cases.catalog import ContentCatalog
from ....domain.entities import RequestContext
from ....infrastructure.cache import cached_json
from ....infrastructure.db import get_db
from ....infrastructure.repositories import ContentRepository
from ..authz import get_request_context, require_context
from ..deps import get_progress_ledger
from ..schemas import (
    LessonDetailOut,
    LessonProgressOut,
    ModuleDetailOut,
    ModuleOut,
    ModuleProgressOut,
    ModuleProgressSummaryOut,
    PositionReq,
)

router = APIRouter(prefix="/api/learning", tags=["learning"])


@router.get("/modules", response_model=list[ModuleOut])
def list_modules(db: Session = Depends(get_db)):
    # Кэширование каталога модулей
    return cached_json("learning:modules", lambda: [
        ModuleOut.model_validate(m).model_dump(mode="json")
        for m in ContentCatalog(ContentRepository(db)).list_modules()
    ])


@router.get("/modules/{module_id}", response_model=ModuleDetailOut)
def get_module(module_id: int, db: Session = Depends(get_db)):
    def load():
        data = ContentCatalog(ContentRepository(db)).get_module_with_lessons(module_id)
        return ModuleDetailOut.model_validate(data, from_attributes=True).model_dump(mode="json")

    return cached_json(f"learning:module:{module_id}", load)


@router.get("/modules/{module_id}/progress", response_model=ModuleProgressSummaryOut | None)
def module_progress(
    module_id: int,
    ctx: RequestContext = Depends(get_request_context),
    ledger: ProgressLedger = Depends(get_progress_ledger),
):
    return ledger.get_module_progress(ctx, module_id)


@router.get("/progress", response_model=list[ModuleProgressOut])
def all_progress(
    ctx: RequestContext = Depends(get_request_context),
    ledger: ProgressLedger = Depends(get_progress_ledger),
):
    return ledger.get_all_progress(ctx)


@router.get("/lessons/{lesson_id}", response_model=LessonDetailOut)
def get_lesson(lesson_id: int, db: Session = Depends(get_db)):
    data = ContentCatalog(ContentRepository(db)).get_lesson_with_content(lesson_id)
    return LessonDetailOut.model_validate(data, from_attributes=True)


@router.get("/lessons/{lesson_id}/progress", response_model=LessonProgressOut | None)
def lesson_progress(
    lesson_id: int,
    ctx: RequestContext = Depends(get_request_context),
    ledger: ProgressLedger = Depends(get_progress_ledger),
):
    return ledger.get_lesson_progress(ctx, lesson_id)


@router.post("/lessons/{lesson_id}/complete", response_model=LessonProgressOut)
def complete_lesson(
    lesson_id: int,
    ctx: RequestContext = Depends(require_context),
    ledger: ProgressLedger = Depends(get_progress_ledger),
    db: Session = Depends(get_db),
):
    # урок, пересчёт модуля, опыт и достижения коммитятся одной транзакцией
    progress = ledger.mark_lesson_completed(ctx, lesson_id)
    db.commit()
    return progress


@router.put("/lessons/{lesson_id}/position", response_model=LessonProgressOut)
def update_position(
    lesson_id: int,
    payload: PositionReq,
    ctx: RequestContext = Depends(require_context),
    ledger: ProgressLedger = Depends(get_progress_ledger),
    db: Session = Depends(get_db),
):
    progress = ledger.update_lesson_position(ctx, lesson_id, payload.position)
    db.commit()
    return progress

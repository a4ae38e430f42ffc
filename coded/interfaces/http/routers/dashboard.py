from fastapi import APIRouter, Depends

from ....application.dashboard import DashboardAggregator
from ....domain.entities import RequestContext
from ..authz import get_request_context
from ..deps import get_dashboard
from ..schemas import (
    DashboardStatsOut,
    LearningProgressItem,
    RecentAchievementOut,
    RecentGameOut,
    SavedProjectOut,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
def stats(
    ctx: RequestContext = Depends(get_request_context),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.get_dashboard_stats(ctx)


@router.get("/learning-progress", response_model=list[LearningProgressItem])
def learning_progress(
    ctx: RequestContext = Depends(get_request_context),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.get_learning_progress(ctx)


@router.get("/achievements", response_model=list[RecentAchievementOut])
def achievements(
    ctx: RequestContext = Depends(get_request_context),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.get_recent_achievements(ctx)


@router.get("/recent-games", response_model=list[RecentGameOut])
def recent_games(
    ctx: RequestContext = Depends(get_request_context),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.get_recent_games(ctx)


@router.get("/projects", response_model=list[SavedProjectOut])
def saved_projects(
    ctx: RequestContext = Depends(get_request_context),
    dashboard: DashboardAggregator = Depends(get_dashboard),
):
    return dashboard.get_saved_projects(ctx)

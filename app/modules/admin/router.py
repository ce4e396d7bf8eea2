from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.admin.diagnostics import AdminDiagnosticsService
from app.modules.admin.service import AdminPanelService, parse_days

admin_router = APIRouter(dependencies=[Depends(AuthDependencies.require_admin())])


@admin_router.get("/panel/overview")
def panel_overview(db: db_dependency, days: Optional[str] = None):
    """Métricas del día y alertas de personal"""
    return AdminPanelService(db).overview(parse_days(days))


@admin_router.get("/panel/ai-insights")
def panel_ai_insights(
    db: db_dependency,
    days: Optional[str] = None,
    x_openai_api_key: Optional[str] = Header(None),
    x_openai_model: Optional[str] = Header(None)
):
    return AdminPanelService(db).ai_insights(parse_days(days), x_openai_api_key, x_openai_model)


@admin_router.get("/diagnostics/users-integrity")
def users_integrity(db: db_dependency):
    return AdminDiagnosticsService(db).users_integrity()

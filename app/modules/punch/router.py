from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.punch.schemas import PunchCreate, PunchOut, AdminPunchOut
from app.modules.punch.service import PunchService

punch_router = APIRouter()
admin_punch_router = APIRouter(dependencies=[Depends(AuthDependencies.require_admin())])
admin_attendance_router = APIRouter(dependencies=[Depends(AuthDependencies.require_admin())])


@punch_router.post("", response_model=PunchOut, status_code=status.HTTP_201_CREATED)
def create_punch(body: PunchCreate, db: db_dependency, current_user: user_dependency):
    """Registrar un ponche con la hora del servidor"""
    return PunchService(db).create_punch(current_user, body.type)


@punch_router.get("/me", response_model=List[PunchOut])
def list_my_punches(
    db: db_dependency,
    current_user: user_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None)
):
    return PunchService(db).list_mine(current_user, from_, to)


@admin_punch_router.get("", response_model=List[AdminPunchOut])
def list_punches(
    db: db_dependency,
    user_id: Optional[UUID] = Query(None),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None)
):
    return PunchService(db).list_admin(user_id, from_, to)


@admin_punch_router.get("/attendance/summary")
@admin_attendance_router.get("/summary")
def attendance_summary(
    db: db_dependency,
    user_id: Optional[UUID] = Query(None),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    incidents_only: bool = Query(False)
):
    """Resumen de incidencias de asistencia por usuario"""
    return PunchService(db).attendance_summary(user_id, from_, to, incidents_only)


@admin_punch_router.get("/attendance/user/{user_id}")
@admin_attendance_router.get("/user/{user_id}")
def attendance_detail(
    user_id: UUID,
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    incidents_only: bool = Query(False)
):
    return PunchService(db).attendance_detail(user_id, from_, to, incidents_only)

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.cotizaciones.schemas import CotizacionCreate, CotizacionUpdate, CotizacionOut, CotizacionList
from app.modules.cotizaciones.service import CotizacionService

cotizaciones_router = APIRouter()

READ_ROLES = ["ADMIN", "ASISTENTE", "VENDEDOR", "TECNICO"]
WRITE_ROLES = ["ADMIN", "ASISTENTE", "VENDEDOR"]


@cotizaciones_router.get("", response_model=CotizacionList)
def list_cotizaciones(
    db: db_dependency,
    customer_phone: Optional[str] = None,
    take: int = Query(80),
    current_user = Depends(AuthDependencies.require_role(READ_ROLES))
):
    return CotizacionService(db).list_cotizaciones(current_user, customer_phone, take)


@cotizaciones_router.get("/{cotizacion_id}", response_model=CotizacionOut)
def get_cotizacion(
    cotizacion_id: UUID,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(READ_ROLES))
):
    return CotizacionService(db).get_cotizacion(current_user, cotizacion_id)


@cotizaciones_router.post("", response_model=CotizacionOut, status_code=status.HTTP_201_CREATED)
def create_cotizacion(
    body: CotizacionCreate,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(WRITE_ROLES))
):
    return CotizacionService(db).create_cotizacion(current_user, body)


@cotizaciones_router.patch("/{cotizacion_id}", response_model=CotizacionOut)
def update_cotizacion(
    cotizacion_id: UUID,
    body: CotizacionUpdate,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(WRITE_ROLES))
):
    return CotizacionService(db).update_cotizacion(current_user, cotizacion_id, body)


@cotizaciones_router.delete("/{cotizacion_id}")
def delete_cotizacion(
    cotizacion_id: UUID,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(WRITE_ROLES))
):
    return CotizacionService(db).delete_cotizacion(current_user, cotizacion_id)

"""
Rutas de ubicación: los técnicos reportan, el administrador consulta.
"""
from typing import List

from fastapi import APIRouter, Depends

from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.locations.schemas import LocationReport, LocationOut, LatestLocationOut
from app.modules.locations.service import LocationService

locations_router = APIRouter()
admin_locations_router = APIRouter(dependencies=[Depends(AuthDependencies.require_admin())])


@locations_router.post(
    "",
    response_model=LocationOut,
    summary="Report current location",
    description="""
    El técnico envía su posición actual.
    Solo se guarda la última ubicación por usuario.
    """
)
def report_location(
    body: LocationReport,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(["TECNICO"]))
):
    return LocationService(db).report(current_user, body)


@admin_locations_router.get(
    "/latest",
    response_model=List[LatestLocationOut],
    summary="Latest locations",
    description="Última ubicación conocida de cada usuario, la más reciente primero."
)
def latest_locations(db: db_dependency):
    return LocationService(db).latest()

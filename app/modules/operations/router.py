from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from app.common.uploads import MB, DOCUMENT_TYPES, DOCUMENT_EXTENSIONS, save_upload
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.operations.models import ServiceStatus, ServiceType
from app.modules.operations.schemas import (
    ServiceCreate, StatusChange, ScheduleRequest, AssignRequest, ServiceUpdateCreate,
    WarrantyCreate, FieldServiceOut, ServiceList, ScheduleResult, TechnicianOut, FileOut
)
from app.modules.operations.service import OperationsService

operations_router = APIRouter()

ALL_OPERATION_ROLES = ["ADMIN", "ASISTENTE", "VENDEDOR", "TECNICO"]
MANAGE_ROLES = ["ADMIN", "ASISTENTE", "VENDEDOR"]

require_any = AuthDependencies.require_role(ALL_OPERATION_ROLES)
require_manage = AuthDependencies.require_role(MANAGE_ROLES)
require_admin = AuthDependencies.require_admin()


@operations_router.get("/services", response_model=ServiceList)
def list_services(
    db: db_dependency,
    service_status: Optional[ServiceStatus] = Query(None, alias="status"),
    service_type: Optional[ServiceType] = Query(None, alias="type"),
    priority: Optional[int] = Query(None, ge=1, le=3),
    assigned_to: Optional[UUID] = None,
    customer_id: Optional[UUID] = None,
    seller_id: Optional[UUID] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    include_deleted: bool = False,
    page: int = Query(1, ge=1),
    page_size: int = Query(30, ge=1, le=200),
    current_user = Depends(require_any)
):
    return OperationsService(db).list_services(
        current_user,
        page=page,
        page_size=page_size,
        service_status=service_status,
        service_type=service_type,
        priority=priority,
        assigned_to=assigned_to,
        customer_id=customer_id,
        seller_id=seller_id,
        category=category,
        search=search,
        from_=from_,
        to=to,
        include_deleted=include_deleted
    )


@operations_router.get("/technicians", response_model=List[TechnicianOut])
def list_technicians(db: db_dependency, current_user = Depends(require_any)):
    return OperationsService(db).list_technicians()


@operations_router.get("/services/{service_id}", response_model=FieldServiceOut)
def get_service(service_id: UUID, db: db_dependency, current_user = Depends(require_any)):
    return OperationsService(db).get_service(current_user, service_id)


@operations_router.post("/services", response_model=FieldServiceOut, status_code=status.HTTP_201_CREATED)
def create_service(body: ServiceCreate, db: db_dependency, current_user = Depends(require_manage)):
    return OperationsService(db).create_service(current_user, body)


@operations_router.patch("/services/{service_id}/status", response_model=FieldServiceOut)
def change_status(service_id: UUID, body: StatusChange, db: db_dependency, current_user = Depends(require_any)):
    return OperationsService(db).change_status(current_user, service_id, body)


@operations_router.patch("/services/{service_id}/schedule", response_model=ScheduleResult)
def schedule_service(service_id: UUID, body: ScheduleRequest, db: db_dependency, current_user = Depends(require_manage)):
    return OperationsService(db).schedule(current_user, service_id, body)


@operations_router.post("/services/{service_id}/assign", response_model=FieldServiceOut)
def assign_service(service_id: UUID, body: AssignRequest, db: db_dependency, current_user = Depends(require_manage)):
    return OperationsService(db).assign(current_user, service_id, body)


@operations_router.post("/services/{service_id}/update", response_model=Union[FieldServiceOut, dict])
def add_service_update(
    service_id: UUID,
    body: ServiceUpdateCreate,
    db: db_dependency,
    current_user = Depends(require_manage)
):
    """Nota en la bitácora, o marcar/desmarcar un paso si viene step_id"""
    return OperationsService(db).add_update(current_user, service_id, body)


@operations_router.post("/services/{service_id}/files", response_model=FileOut, status_code=status.HTTP_201_CREATED)
async def upload_service_file(
    service_id: UUID,
    request: Request,
    db: db_dependency,
    file: UploadFile = File(...),
    current_user = Depends(require_manage)
):
    service = OperationsService(db)
    service.ensure_can_operate(current_user, service_id)
    saved = await save_upload(
        request,
        file,
        max_bytes=10 * MB,
        types=DOCUMENT_TYPES,
        extensions=DOCUMENT_EXTENSIONS,
        extension_fallback=True,
        prefix="service-"
    )
    return service.add_file(current_user, service_id, saved["url"], file.content_type or "application/octet-stream")


@operations_router.post("/services/{service_id}/warranty", response_model=FieldServiceOut, status_code=status.HTTP_201_CREATED)
def create_warranty(service_id: UUID, body: WarrantyCreate, db: db_dependency, current_user = Depends(require_manage)):
    return OperationsService(db).create_warranty(current_user, service_id, body)


@operations_router.delete("/services/{service_id}")
def delete_service(service_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    return OperationsService(db).remove(current_user, service_id)


@operations_router.get("/customers/{customer_id}/services", response_model=List[FieldServiceOut])
def services_by_customer(customer_id: UUID, db: db_dependency, current_user = Depends(require_any)):
    return OperationsService(db).services_by_customer(current_user, customer_id)


@operations_router.get("/dashboard/operations")
def operations_dashboard(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    current_user = Depends(require_any)
):
    return OperationsService(db).dashboard(current_user, from_, to)

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientOut, ClientList
from app.modules.clients.service import ClientService

clients_router = APIRouter()

CLIENT_ROLES = ["ADMIN", "ASISTENTE", "VENDEDOR"]


@clients_router.post("", response_model=ClientOut, status_code=status.HTTP_201_CREATED)
def create_client(
    body: ClientCreate,
    db: Session = Depends(get_db),
    current_user = Depends(AuthDependencies.require_role(CLIENT_ROLES))
):
    return ClientService(db).create_client(body, current_user.id)


@clients_router.get("", response_model=ClientList)
def list_clients(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=200),
    only_deleted: bool = False,
    include_deleted: bool = False,
    db: Session = Depends(get_db),
    current_user = Depends(AuthDependencies.require_role(CLIENT_ROLES))
):
    return ClientService(db).list_clients(search, page, page_size, only_deleted, include_deleted)


@clients_router.get("/{client_id}", response_model=ClientOut)
def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    current_user = Depends(AuthDependencies.require_role(CLIENT_ROLES))
):
    return ClientService(db).get_client(client_id)


@clients_router.patch("/{client_id}", response_model=ClientOut)
def update_client(
    client_id: UUID,
    body: ClientUpdate,
    db: Session = Depends(get_db),
    current_user = Depends(AuthDependencies.require_role(CLIENT_ROLES))
):
    return ClientService(db).update_client(client_id, body)


@clients_router.delete("/{client_id}")
def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    current_user = Depends(AuthDependencies.require_role(CLIENT_ROLES))
):
    return ClientService(db).delete_client(client_id)

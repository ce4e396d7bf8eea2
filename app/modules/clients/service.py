import math
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.modules.clients.models import Client
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientList


class ClientService:
    """Servicio para gestión de clientes"""

    def __init__(self, db: Session):
        self.db = db

    def create_client(self, data: ClientCreate, owner_id: UUID) -> Client:
        client = Client(
            owner_id=owner_id,
            nombre=data.nombre.strip(),
            telefono=data.telefono.strip(),
            email=(data.email or "").strip() or None,
            direccion=(data.direccion or "").strip() or None,
            notas=data.notas
        )
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def list_clients(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        only_deleted: bool = False,
        include_deleted: bool = False
    ) -> ClientList:
        """
        Listar clientes con búsqueda y paginación

        Args:
            search: Texto a buscar en nombre, teléfono o email
            page: Página (desde 1)
            page_size: Tamaño de página
            only_deleted: Solo clientes eliminados
            include_deleted: Incluir eliminados junto a los activos

        Returns:
            ClientList con items, total y total_pages
        """
        query = self.db.query(Client)

        if only_deleted:
            query = query.filter(Client.is_deleted.is_(True))
        elif not include_deleted:
            query = query.filter(Client.is_deleted.is_(False))

        term = (search or "").strip()
        if term:
            search_term = f"%{term}%"
            query = query.filter(
                or_(
                    Client.nombre.ilike(search_term),
                    Client.telefono.ilike(search_term),
                    Client.email.ilike(search_term)
                )
            )

        total = query.count()
        items = (
            query.order_by(Client.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return ClientList(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=max(1, math.ceil(total / page_size))
        )

    def get_client(self, client_id: UUID, include_deleted: bool = False) -> Client:
        query = self.db.query(Client).filter(Client.id == client_id)
        if not include_deleted:
            query = query.filter(Client.is_deleted.is_(False))
        client = query.first()
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado"
            )
        return client

    def update_client(self, client_id: UUID, data: ClientUpdate) -> Client:
        client = self.get_client(client_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("nombre", "telefono"):
                if value is None:
                    continue
                value = value.strip()
            setattr(client, field, value)
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, client_id: UUID) -> dict:
        """Soft delete de cliente"""
        client = self.get_client(client_id)
        client.soft_delete()
        self.db.commit()
        return {"ok": True}

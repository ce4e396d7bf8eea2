import logging
import math
from datetime import timedelta
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import false, func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.common.dates import utc_now, as_utc, rd_today, rd_day_start, parse_range, apply_range
from app.modules.auth.models import User, Role
from app.modules.clients.models import Client
from app.modules.operations.models import (
    FieldService, ServiceAssignment, ServiceStep, ServiceUpdate, ServiceFile,
    ServiceType, ServiceStatus, ServiceUpdateType, PaymentStatus
)
from app.modules.operations.schemas import (
    ServiceCreate, StatusChange, ScheduleRequest, AssignRequest, ServiceUpdateCreate,
    WarrantyCreate, FieldServiceOut, ScheduleResult, ScheduleConflict
)

logger = logging.getLogger(__name__)

DEFAULT_STEPS = [
    ("survey_done", "Levantamiento completado"),
    ("materials_ready", "Materiales listos"),
    ("installed", "Instalación ejecutada"),
    ("tested", "Pruebas realizadas"),
    ("customer_trained", "Cliente instruido"),
]

TRANSITIONS = {
    ServiceStatus.RESERVED: {ServiceStatus.SURVEY, ServiceStatus.CANCELLED},
    ServiceStatus.SURVEY: {ServiceStatus.SCHEDULED, ServiceStatus.CANCELLED},
    ServiceStatus.SCHEDULED: {ServiceStatus.IN_PROGRESS, ServiceStatus.CANCELLED},
    ServiceStatus.IN_PROGRESS: {ServiceStatus.COMPLETED, ServiceStatus.WARRANTY, ServiceStatus.CANCELLED},
    ServiceStatus.COMPLETED: {ServiceStatus.WARRANTY, ServiceStatus.CLOSED},
    ServiceStatus.WARRANTY: {ServiceStatus.IN_PROGRESS, ServiceStatus.CLOSED},
    ServiceStatus.CLOSED: set(),
    ServiceStatus.CANCELLED: set(),
}

OPEN_INSTALLATION_STATUSES = (
    ServiceStatus.RESERVED, ServiceStatus.SURVEY, ServiceStatus.SCHEDULED, ServiceStatus.IN_PROGRESS
)
BUSY_STATUSES = (ServiceStatus.SCHEDULED, ServiceStatus.IN_PROGRESS)
ASSIGNABLE_ROLES = (Role.TECNICO, Role.ADMIN, Role.ASISTENTE)
SUPERVISOR_ROLES = (Role.ADMIN, Role.ASISTENTE)

DEFAULT_PAGE_SIZE = 30


def is_valid_transition(current: ServiceStatus, target: ServiceStatus) -> bool:
    if current == target:
        return True
    return target in TRANSITIONS[current]


def can_force(user: User) -> bool:
    return user.role in SUPERVISOR_ROLES


def _default_steps() -> List[ServiceStep]:
    return [
        ServiceStep(position=index, step_key=key, step_label=label)
        for index, (key, label) in enumerate(DEFAULT_STEPS)
    ]


def _iso(value) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None


class OperationsService:
    """
    Servicios técnicos en campo.

    La visibilidad depende del rol: ADMIN y ASISTENTE ven todo, VENDEDOR ve
    los servicios que creó y TECNICO los que tiene asignados.
    """

    def __init__(self, db: Session):
        self.db = db

    # Scope

    def _scope(self, query, user: User):
        if user.role in SUPERVISOR_ROLES:
            return query
        if user.role == Role.VENDEDOR:
            return query.filter(FieldService.created_by_user_id == user.id)
        if user.role == Role.TECNICO:
            return query.filter(FieldService.assignments.any(ServiceAssignment.user_id == user.id))
        return query.filter(false())

    @staticmethod
    def _assigned_ids(service: FieldService) -> List[UUID]:
        return [assignment.user_id for assignment in service.assignments]

    def _can_access(self, user: User, service: FieldService) -> bool:
        if user.role in SUPERVISOR_ROLES:
            return True
        if user.role == Role.VENDEDOR:
            return service.created_by_user_id == user.id
        if user.role == Role.TECNICO:
            return user.id in self._assigned_ids(service)
        return False

    def _assert_can_view(self, user: User, service: FieldService) -> None:
        if not self._can_access(user, service):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado para ver este servicio")

    def _assert_can_operate(self, user: User, service: FieldService) -> None:
        if not self._can_access(user, service):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado para modificar este servicio")

    # Queries

    def _full_query(self):
        return self.db.query(FieldService).options(
            selectinload(FieldService.customer),
            selectinload(FieldService.created_by),
            selectinload(FieldService.assignments).selectinload(ServiceAssignment.user),
            selectinload(FieldService.steps),
            selectinload(FieldService.updates).selectinload(ServiceUpdate.changed_by),
            selectinload(FieldService.files),
        )

    def _require_active(self, service_id: UUID) -> FieldService:
        service = (
            self.db.query(FieldService)
            .options(selectinload(FieldService.assignments))
            .filter(FieldService.id == service_id, FieldService.is_deleted.is_(False))
            .first()
        )
        if not service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Servicio no encontrado")
        return service

    def _reload(self, service_id: UUID) -> FieldServiceOut:
        self.db.expire_all()
        service = self._full_query().filter(FieldService.id == service_id).one()
        return FieldServiceOut.model_validate(service)

    def _log(self, service_id: UUID, user: User, update_type: ServiceUpdateType,
             old_value=None, new_value=None, message: Optional[str] = None) -> ServiceUpdate:
        update = ServiceUpdate(
            service_id=service_id,
            changed_by_user_id=user.id,
            type=update_type,
            old_value=old_value,
            new_value=new_value,
            message=message
        )
        self.db.add(update)
        return update

    def _filtered(
        self,
        user: User,
        service_status: Optional[ServiceStatus] = None,
        service_type: Optional[ServiceType] = None,
        priority: Optional[int] = None,
        assigned_to: Optional[UUID] = None,
        customer_id: Optional[UUID] = None,
        seller_id: Optional[UUID] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        include_deleted: bool = False
    ):
        query = self._scope(self.db.query(FieldService), user)
        if not include_deleted:
            query = query.filter(FieldService.is_deleted.is_(False))
        if service_status:
            query = query.filter(FieldService.status == service_status)
        if service_type:
            query = query.filter(FieldService.service_type == service_type)
        if priority:
            query = query.filter(FieldService.priority == priority)
        if assigned_to:
            query = query.filter(FieldService.assignments.any(ServiceAssignment.user_id == assigned_to))
        if customer_id:
            query = query.filter(FieldService.customer_id == customer_id)
        if seller_id:
            query = query.filter(FieldService.created_by_user_id == seller_id)
        if category and category.strip():
            query = query.filter(func.lower(FieldService.category) == category.strip().lower())
        if search and search.strip():
            term = f"%{search.strip().lower()}%"
            query = query.filter(or_(
                func.lower(FieldService.title).like(term),
                func.lower(FieldService.description).like(term),
                FieldService.customer.has(or_(
                    func.lower(Client.nombre).like(term),
                    func.lower(Client.telefono).like(term)
                ))
            ))
        return apply_range(query, FieldService.scheduled_start, parse_range(from_, to))

    def list_services(self, user: User, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE, **filters) -> dict:
        """
        Lista paginada de servicios visibles para el usuario.

        Args:
            user: Usuario actual (define el alcance)
            page: Página (1-based)
            page_size: Tamaño de página
            **filters: status, type, priority, assigned_to, customer_id,
                seller_id, category, search, from_, to, include_deleted

        Returns:
            dict con items, total, page, page_size y total_pages
        """
        page = page if page and page > 0 else 1
        page_size = page_size if page_size and page_size > 0 else DEFAULT_PAGE_SIZE

        base = self._filtered(user, **filters)
        total = base.count()
        ids = [
            row[0] for row in base.with_entities(FieldService.id)
            .order_by(FieldService.priority.asc(), FieldService.created_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        ]

        by_id = {s.id: s for s in self._full_query().filter(FieldService.id.in_(ids)).all()} if ids else {}
        items = [FieldServiceOut.model_validate(by_id[i]) for i in ids if i in by_id]

        return {
            "items": items,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": max(1, math.ceil(total / page_size)),
        }

    def get_service(self, user: User, service_id: UUID) -> FieldServiceOut:
        query = self._scope(self._full_query(), user)
        service = query.filter(FieldService.id == service_id, FieldService.is_deleted.is_(False)).first()
        if not service:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Servicio no encontrado")
        return FieldServiceOut.model_validate(service)

    def list_technicians(self) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role.in_(ASSIGNABLE_ROLES), User.blocked.is_(False))
            .order_by(User.nombre_completo.asc())
            .all()
        )

    def services_by_customer(self, user: User, customer_id: UUID) -> List[FieldServiceOut]:
        services = (
            self._scope(self._full_query(), user)
            .filter(FieldService.customer_id == customer_id, FieldService.is_deleted.is_(False))
            .order_by(FieldService.created_at.desc())
            .all()
        )
        return [FieldServiceOut.model_validate(s) for s in services]

    # Commands

    def create_service(self, user: User, data: ServiceCreate) -> FieldServiceOut:
        customer = self.db.query(Client).filter(Client.id == data.customer_id).first()
        if not customer or customer.is_deleted:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cliente inválido")

        if data.service_type == ServiceType.WARRANTY and not data.warranty_parent_service_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Garantía requiere servicio padre")

        if data.warranty_parent_service_id:
            parent = self.db.query(FieldService).filter(
                FieldService.id == data.warranty_parent_service_id,
                FieldService.is_deleted.is_(False)
            ).first()
            if not parent:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Servicio padre no encontrado")

        priority = data.priority or (1 if data.service_type == ServiceType.INSTALLATION else 2)

        service = FieldService(
            customer_id=customer.id,
            created_by_user_id=user.id,
            service_type=data.service_type,
            category=data.category.strip(),
            status=ServiceStatus.RESERVED,
            priority=priority,
            title=data.title.strip(),
            description=data.description.strip(),
            quoted_amount=data.quoted_amount,
            deposit_amount=data.deposit_amount,
            payment_status=data.payment_status or PaymentStatus.PENDING,
            address_snapshot=(data.address_snapshot or "").strip() or customer.direccion,
            warranty_parent_service_id=data.warranty_parent_service_id,
            tags=data.tags,
            steps=_default_steps()
        )
        self.db.add(service)
        self.db.flush()
        self._log(service.id, user, ServiceUpdateType.STATUS_CHANGE,
                  new_value={"status": ServiceStatus.RESERVED.value}, message="Reserva creada")
        self.db.commit()
        logger.info(f"Servicio {service.id} creado por {user.id}")
        return self._reload(service.id)

    def change_status(self, user: User, service_id: UUID, data: StatusChange) -> FieldServiceOut:
        service = self._require_active(service_id)
        self._assert_can_operate(user, service)

        current = ServiceStatus(service.status)
        target = data.status
        force = data.force and can_force(user)

        if not force and not is_valid_transition(current, target):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Transición inválida de {current.value} a {target.value}"
            )

        if target == ServiceStatus.COMPLETED and not force:
            if not service.completed_at and not service.scheduled_start:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="No se puede completar sin agendado previo"
                )

        service.status = target
        if target == ServiceStatus.COMPLETED:
            service.completed_at = utc_now()

        default_message = "Cambio forzado por administrador" if force else "Cambio de estado"
        self._log(service.id, user, ServiceUpdateType.STATUS_CHANGE,
                  old_value={"status": current.value},
                  new_value={"status": target.value, "force": force},
                  message=(data.message or "").strip() or default_message)
        self.db.commit()
        return self._reload(service.id)

    def find_conflicts(self, service: FieldService, start, end) -> List[FieldService]:
        """Servicios activos de los mismos técnicos que se solapan con [start, end)"""
        tech_ids = self._assigned_ids(service)
        if not tech_ids:
            return []
        return (
            self.db.query(FieldService)
            .filter(
                FieldService.id != service.id,
                FieldService.is_deleted.is_(False),
                FieldService.status.in_(BUSY_STATUSES),
                FieldService.assignments.any(ServiceAssignment.user_id.in_(tech_ids)),
                FieldService.scheduled_start < end,
                FieldService.scheduled_end > start
            )
            .all()
        )

    def schedule(self, user: User, service_id: UUID, data: ScheduleRequest) -> ScheduleResult:
        service = self._require_active(service_id)
        self._assert_can_operate(user, service)

        start = as_utc(data.scheduled_start)
        end = as_utc(data.scheduled_end)
        if end <= start:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Rango de agenda inválido")

        conflicts = self.find_conflicts(service, start, end)
        # Las instalaciones tienen prioridad sobre cualquier otro tipo
        has_install_conflict = any(c.service_type == ServiceType.INSTALLATION for c in conflicts)
        if service.service_type != ServiceType.INSTALLATION and has_install_conflict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Conflicto: existe instalación prioritaria en ese horario"
            )

        old_value = {
            "scheduled_start": _iso(service.scheduled_start),
            "scheduled_end": _iso(service.scheduled_end),
        }
        service.scheduled_start = start
        service.scheduled_end = end
        if service.status == ServiceStatus.RESERVED:
            service.status = ServiceStatus.SCHEDULED

        default_message = "Reagenda con conflictos detectados" if conflicts else "Agenda actualizada"
        self._log(service.id, user, ServiceUpdateType.SCHEDULE_CHANGE,
                  old_value=old_value,
                  new_value={
                      "scheduled_start": _iso(start),
                      "scheduled_end": _iso(end),
                      "conflicts": [str(c.id) for c in conflicts],
                  },
                  message=(data.message or "").strip() or default_message)

        conflict_rows = [
            ScheduleConflict(
                id=c.id,
                type=c.service_type,
                title=c.title,
                scheduled_start=c.scheduled_start,
                scheduled_end=c.scheduled_end
            )
            for c in conflicts
        ]
        self.db.commit()

        result = self._reload(service.id)
        return ScheduleResult(**result.model_dump(), conflicts=conflict_rows)

    def assign(self, user: User, service_id: UUID, data: AssignRequest) -> FieldServiceOut:
        service = self._require_active(service_id)
        self._assert_can_operate(user, service)

        tech_ids = [item.user_id for item in data.assignments]
        valid = self.db.query(func.count(User.id)).filter(
            User.id.in_(tech_ids),
            User.role.in_(ASSIGNABLE_ROLES),
            User.blocked.is_(False)
        ).scalar()
        if valid != len(tech_ids):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Hay técnicos inválidos en la asignación")

        old_value = [
            {"user_id": str(a.user_id), "role": a.role.value if hasattr(a.role, "value") else a.role}
            for a in service.assignments
        ]
        service.assignments = [
            ServiceAssignment(user_id=item.user_id, role=item.role) for item in data.assignments
        ]
        self._log(service.id, user, ServiceUpdateType.ASSIGNMENT_CHANGE,
                  old_value=old_value,
                  new_value=[{"user_id": str(i.user_id), "role": i.role.value} for i in data.assignments],
                  message="Asignaciones actualizadas")
        self.db.commit()
        return self._reload(service.id)

    def add_update(self, user: User, service_id: UUID, data: ServiceUpdateCreate):
        """
        Agrega una nota a la bitácora o marca un paso.

        Con step_id devuelve el servicio completo; si no, ``{"ok": True}``.
        """
        service = self._require_active(service_id)
        self._assert_can_view(user, service)
        message = (data.message or "").strip()

        if data.step_id:
            step = self.db.query(ServiceStep).filter(
                ServiceStep.id == data.step_id,
                ServiceStep.service_id == service.id
            ).first()
            if not step:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Paso no encontrado")

            was_done = step.is_done
            step.is_done = data.step_done
            step.done_at = utc_now() if data.step_done else None
            step.done_by_user_id = user.id if data.step_done else None

            state = "completado" if data.step_done else "marcado pendiente"
            self._log(service.id, user, ServiceUpdateType.STEP_UPDATE,
                      old_value={"step_id": str(step.id), "is_done": was_done},
                      new_value={"step_id": str(step.id), "is_done": data.step_done},
                      message=message or f"Paso {step.step_label} {state}")
            self.db.commit()
            return self.get_service(user, service.id)

        self._log(service.id, user, data.type,
                  old_value=data.old_value,
                  new_value=data.new_value,
                  message=message or "Actualización interna")
        self.db.commit()
        return {"ok": True}

    def ensure_can_operate(self, user: User, service_id: UUID) -> None:
        self._assert_can_operate(user, self._require_active(service_id))

    def add_file(self, user: User, service_id: UUID, file_url: str, file_type: str) -> ServiceFile:
        service = self._require_active(service_id)
        self._assert_can_operate(user, service)

        record = ServiceFile(
            service_id=service.id,
            uploaded_by_user_id=user.id,
            file_url=file_url,
            file_type=file_type
        )
        self.db.add(record)
        self._log(service.id, user, ServiceUpdateType.FILE_UPLOAD,
                  new_value={"file_url": file_url, "file_type": file_type},
                  message="Evidencia subida")
        self.db.commit()
        self.db.refresh(record)
        return record

    def create_warranty(self, user: User, parent_id: UUID, data: WarrantyCreate) -> FieldServiceOut:
        parent = self._require_active(parent_id)
        self._assert_can_operate(user, parent)

        if parent.status not in (ServiceStatus.COMPLETED, ServiceStatus.WARRANTY, ServiceStatus.CLOSED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo se puede crear garantía desde servicio completado/cerrado"
            )

        warranty = FieldService(
            customer_id=parent.customer_id,
            created_by_user_id=user.id,
            service_type=ServiceType.WARRANTY,
            category=parent.category,
            status=ServiceStatus.WARRANTY,
            priority=1,
            title=(data.title or "").strip() or f"Garantía: {parent.title}",
            description=(data.description or "").strip() or f"Garantía derivada del servicio {parent.id}",
            payment_status=PaymentStatus.PENDING,
            address_snapshot=parent.address_snapshot,
            warranty_parent_service_id=parent.id,
            tags=list(parent.tags or []),
            steps=_default_steps()
        )
        self.db.add(warranty)
        self.db.flush()

        self._log(parent.id, user, ServiceUpdateType.WARRANTY_CREATED,
                  new_value={"warranty_service_id": str(warranty.id)},
                  message="Se creó ticket de garantía")
        self._log(warranty.id, user, ServiceUpdateType.STATUS_CHANGE,
                  new_value={"status": ServiceStatus.WARRANTY.value},
                  message="Ticket de garantía creado")
        self.db.commit()
        logger.info(f"Garantía {warranty.id} creada desde {parent.id}")
        return self._reload(warranty.id)

    def remove(self, user: User, service_id: UUID) -> dict:
        service = self._require_active(service_id)
        service.is_deleted = True
        self._log(service.id, user, ServiceUpdateType.NOTE,
                  new_value={"is_deleted": True},
                  message="Servicio eliminado (soft delete)")
        self.db.commit()
        return {"ok": True}

    # Dashboard

    def dashboard(self, user: User, from_: Optional[str] = None, to: Optional[str] = None) -> dict:
        base = self._filtered(user, from_=from_, to=to)

        by_status = (
            base.with_entities(FieldService.status, func.count(FieldService.id))
            .group_by(FieldService.status)
            .all()
        )

        today = rd_today()
        installations_pending_today = base.filter(
            FieldService.service_type == ServiceType.INSTALLATION,
            FieldService.status.in_(OPEN_INSTALLATION_STATUSES),
            FieldService.scheduled_start >= rd_day_start(today),
            FieldService.scheduled_start < rd_day_start(today + timedelta(days=1))
        ).count()

        warranties_open = base.filter(FieldService.status == ServiceStatus.WARRANTY).count()

        completed = base.filter(FieldService.status == ServiceStatus.COMPLETED)
        lifecycles = completed.filter(FieldService.completed_at.isnot(None)).with_entities(
            FieldService.created_at, FieldService.completed_at
        ).all()
        average_hours = 0.0
        if lifecycles:
            total_hours = sum(
                (as_utc(done) - as_utc(created)).total_seconds() / 3600 for created, done in lifecycles
            )
            average_hours = round(total_hours / len(lifecycles), 2)

        completed_ids = completed.with_entities(FieldService.id).subquery()
        per_tech = (
            self.db.query(ServiceAssignment.user_id, User.nombre_completo, func.count(ServiceAssignment.id))
            .join(User, User.id == ServiceAssignment.user_id)
            .filter(ServiceAssignment.service_id.in_(select(completed_ids.c.id)))
            .group_by(ServiceAssignment.user_id, User.nombre_completo)
            .all()
        )

        return {
            "active_by_status": [
                {"status": ServiceStatus(s).value, "count": count} for s, count in by_status
            ],
            "installations_pending_today": installations_pending_today,
            "warranties_open": warranties_open,
            "average_hours_by_lifecycle": average_hours,
            "technician_performance": [
                {"user_id": str(user_id), "technician_name": name or "Técnico", "completed_count": count}
                for user_id, name, count in per_tech
            ],
        }

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.payroll.schemas import (
    PayrollPeriodCreate, PayrollPeriodOut,
    PayrollEmployeeUpsert, PayrollEmployeeOut,
    PayrollConfigUpsert, PayrollConfigOut,
    PayrollEntryCreate, PayrollEntryOut,
    PayrollTotals, PayrollHistoryRow
)
from app.modules.payroll.service import PayrollService

payroll_router = APIRouter()

require_admin = AuthDependencies.require_admin()


def _service(db) -> PayrollService:
    return PayrollService(db)


# Self service (cualquier rol)

@payroll_router.get("/my-history", response_model=List[PayrollHistoryRow])
def my_history(db: db_dependency, current_user: user_dependency):
    return _service(db).my_history(current_user)


@payroll_router.get("/my-goal")
def my_goal(db: db_dependency, current_user: user_dependency, user_id: Optional[UUID] = None):
    return _service(db).my_goal(current_user, user_id)


# Periods

@payroll_router.get("/periods", response_model=List[PayrollPeriodOut])
def list_periods(db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.list_periods(service.resolve_owner_id(current_user.id))


@payroll_router.get("/periods/open-overlap")
def open_overlap(
    db: db_dependency,
    start: date = Query(...),
    end: date = Query(...),
    current_user = Depends(require_admin)
):
    service = _service(db)
    owner_id = service.resolve_owner_id(current_user.id)
    return {"overlaps": service.has_overlapping_open_period(owner_id, start, end)}


@payroll_router.post("/periods/ensure-current-open", response_model=PayrollPeriodOut)
def ensure_current_open(db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.ensure_current_open_period(service.resolve_owner_id(current_user.id))


@payroll_router.get("/periods/{period_id}", response_model=Optional[PayrollPeriodOut])
def get_period(period_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.get_period(service.resolve_owner_id(current_user.id), period_id)


@payroll_router.post("/periods", response_model=PayrollPeriodOut, status_code=status.HTTP_201_CREATED)
def create_period(body: PayrollPeriodCreate, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.create_period(service.resolve_owner_id(current_user.id), body)


@payroll_router.patch("/periods/{period_id}/close")
def close_period(period_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.close_period(service.resolve_owner_id(current_user.id), period_id)


@payroll_router.post("/periods/{period_id}/next-open", response_model=PayrollPeriodOut)
def next_open_period(period_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.create_next_open_period(service.resolve_owner_id(current_user.id), period_id)


@payroll_router.get("/periods/{period_id}/total-all")
def period_total_all(period_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.compute_period_total_all(service.resolve_owner_id(current_user.id), period_id)


# Employees

@payroll_router.get("/employees", response_model=List[PayrollEmployeeOut])
def list_employees(db: db_dependency, active_only: bool = True, current_user = Depends(require_admin)):
    service = _service(db)
    return service.list_employees(service.resolve_owner_id(current_user.id), active_only)


@payroll_router.get("/employees/{employee_id}", response_model=Optional[PayrollEmployeeOut])
def get_employee(employee_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.get_employee(service.resolve_owner_id(current_user.id), employee_id)


@payroll_router.post("/employees/upsert", response_model=PayrollEmployeeOut)
def upsert_employee(body: PayrollEmployeeUpsert, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.upsert_employee(service.resolve_owner_id(current_user.id), body)


# Config

@payroll_router.get("/config", response_model=Optional[PayrollConfigOut])
def get_config(
    db: db_dependency,
    period_id: UUID = Query(...),
    employee_id: UUID = Query(...),
    current_user = Depends(require_admin)
):
    service = _service(db)
    return service.get_config(service.resolve_owner_id(current_user.id), period_id, employee_id)


@payroll_router.post("/config/upsert", response_model=PayrollConfigOut)
def upsert_config(body: PayrollConfigUpsert, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.upsert_config(service.resolve_owner_id(current_user.id), body)


# Entries

@payroll_router.get("/entries", response_model=List[PayrollEntryOut])
def list_entries(
    db: db_dependency,
    period_id: UUID = Query(...),
    employee_id: UUID = Query(...),
    current_user = Depends(require_admin)
):
    service = _service(db)
    return service.list_entries(service.resolve_owner_id(current_user.id), period_id, employee_id)


@payroll_router.post("/entries", response_model=PayrollEntryOut, status_code=status.HTTP_201_CREATED)
def add_entry(body: PayrollEntryCreate, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.add_entry(service.resolve_owner_id(current_user.id), body)


@payroll_router.delete("/entries/{entry_id}")
def delete_entry(entry_id: UUID, db: db_dependency, current_user = Depends(require_admin)):
    service = _service(db)
    return service.delete_entry(service.resolve_owner_id(current_user.id), entry_id)


@payroll_router.get("/totals", response_model=PayrollTotals)
def compute_totals(
    db: db_dependency,
    period_id: UUID = Query(...),
    employee_id: UUID = Query(...),
    current_user = Depends(require_admin)
):
    service = _service(db)
    return service.compute_totals(service.resolve_owner_id(current_user.id), period_id, employee_id)

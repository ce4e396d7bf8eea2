import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.dates import rd_today, rd_day_start
from app.common.money import to_decimal, to_float
from app.modules.auth.models import User, Role
from app.modules.sales.models import Sale
from app.modules.payroll import periods
from app.modules.payroll.models import (
    PayrollPeriod, PayrollPeriodStatus, PayrollEmployee, PayrollEmployeeConfig,
    PayrollEntry, PayrollEntryType
)
from app.modules.payroll.schemas import (
    PayrollPeriodCreate, PayrollEmployeeUpsert, PayrollConfigUpsert, PayrollEntryCreate
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class EntryTotals:
    sales_commissions: Decimal = ZERO
    service_commissions: Decimal = ZERO
    bonuses: Decimal = ZERO
    other_additions: Decimal = ZERO
    absences: Decimal = ZERO
    late: Decimal = ZERO
    advances: Decimal = ZERO
    other_deductions: Decimal = ZERO


@dataclass
class AutomaticCommission:
    used_automatic: bool
    sales_amount: Decimal
    commission_amount: Decimal
    goal: Decimal
    goal_reached: bool


def sum_entries(entries: Iterable[PayrollEntry]) -> EntryTotals:
    """
    Agrupa los movimientos por tipo.

    Las comisiones y bonos negativos se ignoran; ausencias, tardanzas,
    adelantos y descuentos cuentan siempre en valor absoluto; OTRO suma o
    descuenta según su signo.
    """
    totals = EntryTotals()
    for entry in entries:
        amount = to_decimal(entry.amount)
        entry_type = PayrollEntryType(entry.type)
        if entry_type == PayrollEntryType.COMISION_SERVICIO:
            if amount >= 0:
                totals.service_commissions += amount
        elif entry_type == PayrollEntryType.COMISION_VENTAS:
            if amount >= 0:
                totals.sales_commissions += amount
        elif entry_type in (PayrollEntryType.BONIFICACION, PayrollEntryType.PAGO_COMBUSTIBLE):
            if amount >= 0:
                totals.bonuses += amount
        elif entry_type == PayrollEntryType.AUSENCIA:
            totals.absences += abs(amount)
        elif entry_type == PayrollEntryType.TARDE:
            totals.late += abs(amount)
        elif entry_type == PayrollEntryType.ADELANTO:
            totals.advances += abs(amount)
        elif entry_type == PayrollEntryType.DESCUENTO:
            totals.other_deductions += abs(amount)
        elif amount >= 0:
            totals.other_additions += amount
        else:
            totals.other_deductions += abs(amount)
    return totals


def goal_reached(sales_amount: Decimal, goal: Decimal) -> bool:
    if goal <= 0:
        return sales_amount > 0
    return sales_amount >= goal


def _clean(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class PayrollService:
    """Servicio de nómina quincenal"""

    def __init__(self, db: Session):
        self.db = db

    def resolve_owner_id(self, fallback_user_id: UUID) -> UUID:
        """La nómina pertenece al primer ADMIN creado"""
        admin = (
            self.db.query(User.id)
            .filter(User.role == Role.ADMIN)
            .order_by(User.created_at.asc())
            .first()
        )
        return admin[0] if admin else fallback_user_id

    # Periods

    def list_periods(self, owner_id: UUID) -> List[PayrollPeriod]:
        return (
            self.db.query(PayrollPeriod)
            .filter(PayrollPeriod.owner_id == owner_id)
            .order_by(PayrollPeriod.start_date.desc())
            .all()
        )

    def get_period(self, owner_id: UUID, period_id: UUID) -> Optional[PayrollPeriod]:
        return self.db.query(PayrollPeriod).filter(
            PayrollPeriod.owner_id == owner_id,
            PayrollPeriod.id == period_id
        ).first()

    def _require_period(self, owner_id: UUID, period_id: UUID) -> PayrollPeriod:
        period = self.get_period(owner_id, period_id)
        if not period:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quincena no encontrada")
        return period

    def has_overlapping_open_period(self, owner_id: UUID, start: date, end: date) -> bool:
        count = self.db.query(func.count(PayrollPeriod.id)).filter(
            PayrollPeriod.owner_id == owner_id,
            PayrollPeriod.status == PayrollPeriodStatus.OPEN,
            PayrollPeriod.start_date <= end,
            PayrollPeriod.end_date >= start
        ).scalar()
        return count > 0

    def _new_period(self, owner_id: UUID, start: date, end: date, title: str) -> PayrollPeriod:
        period = PayrollPeriod(
            owner_id=owner_id,
            title=title,
            start_date=start,
            end_date=end,
            status=PayrollPeriodStatus.OPEN
        )
        self.db.add(period)
        self.db.commit()
        self.db.refresh(period)
        logger.info(f"Quincena abierta: {title}")
        return period

    def create_period(self, owner_id: UUID, data: PayrollPeriodCreate) -> PayrollPeriod:
        if data.end < data.start:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La fecha final no puede ser menor que la inicial"
            )
        if self.has_overlapping_open_period(owner_id, data.start, data.end):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Ya existe una quincena abierta que se solapa con esas fechas"
            )
        return self._new_period(owner_id, data.start, data.end, data.title.strip())

    def ensure_current_open_period(self, owner_id: UUID, today: Optional[date] = None) -> PayrollPeriod:
        """
        Devuelve la quincena abierta que contiene hoy (hora RD).

        Si hay otras quincenas abiertas se cierran antes de crear la actual.
        """
        today = today or rd_today()
        start, end = periods.period_bounds_for(today)

        open_periods = self.db.query(PayrollPeriod).filter(
            PayrollPeriod.owner_id == owner_id,
            PayrollPeriod.status == PayrollPeriodStatus.OPEN
        ).all()

        for period in open_periods:
            if period.start_date == start and period.end_date == end:
                return period

        for period in open_periods:
            period.status = PayrollPeriodStatus.CLOSED

        return self._new_period(owner_id, start, end, periods.period_title(start, end))

    def close_period(self, owner_id: UUID, period_id: UUID) -> dict:
        period = self._require_period(owner_id, period_id)
        period.status = PayrollPeriodStatus.CLOSED
        self.db.commit()
        logger.info(f"Quincena cerrada: {period.title}")
        return {"ok": True}

    def create_next_open_period(self, owner_id: UUID, period_id: UUID) -> PayrollPeriod:
        current = self._require_period(owner_id, period_id)
        base = periods.next_period_base(current.end_date)
        start, end = periods.period_bounds_for(base)

        existing = self.db.query(PayrollPeriod).filter(
            PayrollPeriod.owner_id == owner_id,
            PayrollPeriod.status == PayrollPeriodStatus.OPEN,
            PayrollPeriod.start_date == start,
            PayrollPeriod.end_date == end
        ).first()
        if existing:
            return existing

        return self._new_period(owner_id, start, end, periods.period_title(start, end))

    def compute_period_total_all(self, owner_id: UUID, period_id: UUID) -> dict:
        self._require_period(owner_id, period_id)
        total = ZERO
        for employee in self.list_employees(owner_id, active_only=True):
            total += to_decimal(self.compute_totals(owner_id, period_id, employee.id)["total"])
        return {"total": to_float(total)}

    # Employees

    def list_employees(self, owner_id: UUID, active_only: bool = True) -> List[PayrollEmployee]:
        query = self.db.query(PayrollEmployee).filter(PayrollEmployee.owner_id == owner_id)
        if active_only:
            query = query.filter(PayrollEmployee.activo.is_(True))
        return query.order_by(PayrollEmployee.nombre.asc()).all()

    def get_employee(self, owner_id: UUID, employee_id: UUID) -> Optional[PayrollEmployee]:
        return self.db.query(PayrollEmployee).filter(
            PayrollEmployee.owner_id == owner_id,
            PayrollEmployee.id == employee_id
        ).first()

    def upsert_employee(self, owner_id: UUID, data: PayrollEmployeeUpsert) -> PayrollEmployee:
        """
        Crea o actualiza un empleado.

        Un id existente actualiza; un id de usuario crea el empleado vinculado
        a ese usuario; cualquier otro id es inválido.
        """
        nombre = data.nombre.strip()
        if not nombre:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El nombre del empleado es obligatorio"
            )

        values = {
            "owner_id": owner_id,
            "nombre": nombre,
            "telefono": _clean(data.telefono),
            "puesto": _clean(data.puesto),
            "cuota_minima": to_decimal(data.cuota_minima),
            "seguro_ley_monto": to_decimal(data.seguro_ley_monto),
            "activo": True if data.activo is None else data.activo,
        }

        employee = None
        if data.id:
            employee = self.get_employee(owner_id, data.id)
            if employee:
                for field, value in values.items():
                    setattr(employee, field, value)
            else:
                if not self.db.query(User.id).filter(User.id == data.id).first():
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail="El usuario seleccionado no existe"
                    )
                employee = PayrollEmployee(id=data.id, **values)
                self.db.add(employee)
        else:
            employee = PayrollEmployee(**values)
            self.db.add(employee)

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Error de integridad en base de datos")
        self.db.refresh(employee)
        return employee

    # Config

    def get_config(self, owner_id: UUID, period_id: UUID, employee_id: UUID) -> Optional[PayrollEmployeeConfig]:
        return self.db.query(PayrollEmployeeConfig).filter(
            PayrollEmployeeConfig.owner_id == owner_id,
            PayrollEmployeeConfig.period_id == period_id,
            PayrollEmployeeConfig.employee_id == employee_id
        ).first()

    def upsert_config(self, owner_id: UUID, data: PayrollConfigUpsert) -> PayrollEmployeeConfig:
        self._require_period(owner_id, data.period_id)
        if not self.get_employee(owner_id, data.employee_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Empleado no encontrado")

        config = self.get_config(owner_id, data.period_id, data.employee_id)
        if not config:
            config = PayrollEmployeeConfig(
                owner_id=owner_id,
                period_id=data.period_id,
                employee_id=data.employee_id
            )
            self.db.add(config)

        config.base_salary = to_decimal(data.base_salary)
        config.include_commissions = data.include_commissions
        config.notes = _clean(data.notes)
        self.db.commit()
        self.db.refresh(config)
        return config

    # Entries

    def list_entries(self, owner_id: UUID, period_id: UUID, employee_id: UUID) -> List[PayrollEntry]:
        return (
            self.db.query(PayrollEntry)
            .filter(
                PayrollEntry.owner_id == owner_id,
                PayrollEntry.period_id == period_id,
                PayrollEntry.employee_id == employee_id
            )
            .order_by(PayrollEntry.date.desc(), PayrollEntry.created_at.desc())
            .all()
        )

    def add_entry(self, owner_id: UUID, data: PayrollEntryCreate) -> PayrollEntry:
        self._require_period(owner_id, data.period_id)
        if not self.get_employee(owner_id, data.employee_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Empleado no encontrado")

        entry = PayrollEntry(
            owner_id=owner_id,
            period_id=data.period_id,
            employee_id=data.employee_id,
            date=data.date,
            type=data.type,
            concept=data.concept.strip(),
            amount=to_decimal(data.amount),
            cantidad=None if data.cantidad is None else to_decimal(data.cantidad)
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete_entry(self, owner_id: UUID, entry_id: UUID) -> dict:
        entry = self.db.query(PayrollEntry).filter(
            PayrollEntry.owner_id == owner_id,
            PayrollEntry.id == entry_id
        ).first()
        if not entry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movimiento no encontrado")
        self.db.delete(entry)
        self.db.commit()
        return {"ok": True}

    # Totals

    def _resolve_sales_user_id(self, employee: Optional[PayrollEmployee]) -> Optional[UUID]:
        """Usuario cuyas ventas cuentan para el empleado: mismo id, o único usuario con su nombre y teléfono"""
        if employee is None:
            return None

        user = self.db.query(User.id).filter(User.id == employee.id).first()
        if user:
            return user[0]

        nombre = employee.nombre.strip()
        if not nombre:
            return None
        query = self.db.query(User.id).filter(User.nombre_completo == nombre)
        telefono = (employee.telefono or "").strip()
        if telefono:
            query = query.filter(User.telefono == telefono)
        matches = query.limit(2).all()
        return matches[0][0] if len(matches) == 1 else None

    def _automatic_commission(
        self,
        employee: Optional[PayrollEmployee],
        include_commissions: bool,
        period: Optional[PayrollPeriod]
    ) -> AutomaticCommission:
        goal = max(ZERO, to_decimal(employee.cuota_minima if employee else None))
        sales_user_id = self._resolve_sales_user_id(employee) if include_commissions else None

        if period is None or sales_user_id is None:
            return AutomaticCommission(False, ZERO, ZERO, goal, False)

        start = rd_day_start(period.start_date)
        end = rd_day_start(period.end_date + timedelta(days=1))
        profit, commission = self.db.query(
            func.coalesce(func.sum(Sale.total_profit), 0),
            func.coalesce(func.sum(Sale.commission_amount), 0)
        ).filter(
            Sale.user_id == sales_user_id,
            Sale.is_deleted.is_(False),
            Sale.sale_date >= start,
            Sale.sale_date < end
        ).one()

        sales_amount = to_decimal(profit)
        reached = goal_reached(sales_amount, goal)
        return AutomaticCommission(
            True,
            sales_amount,
            to_decimal(commission) if reached else ZERO,
            goal,
            reached
        )

    def compute_totals(self, owner_id: UUID, period_id: UUID, employee_id: UUID) -> dict:
        """
        Calcula el total a pagar de un empleado en una quincena.

        Args:
            owner_id: Dueño de la nómina
            period_id: Quincena
            employee_id: Empleado

        Returns:
            dict con desglose de adiciones, deducciones y total
        """
        employee = self.get_employee(owner_id, employee_id)
        config = self.get_config(owner_id, period_id, employee_id)
        period = self.get_period(owner_id, period_id)
        entry_totals = sum_entries(self.list_entries(owner_id, period_id, employee_id))

        include_commissions = config.include_commissions if config else True
        automatic = self._automatic_commission(employee, include_commissions, period)
        has_linked_user = self._resolve_sales_user_id(employee) is not None

        commissions = automatic.commission_amount if automatic.used_automatic else entry_totals.sales_commissions
        base = to_decimal(config.base_salary if config else None)
        seguro_ley = max(ZERO, to_decimal(employee.seguro_ley_monto if employee else None))

        additions = commissions + entry_totals.service_commissions + entry_totals.bonuses + entry_totals.other_additions
        deductions = (
            entry_totals.absences + entry_totals.late + entry_totals.advances
            + entry_totals.other_deductions + seguro_ley
        )

        if automatic.used_automatic:
            source = "automatic"
        elif has_linked_user:
            source = "automatic_disabled"
        else:
            source = "manual"

        return {
            "base_salary": to_float(base),
            "commissions": to_float(commissions),
            "service_commissions": to_float(entry_totals.service_commissions),
            "bonuses": to_float(entry_totals.bonuses),
            "other_additions": to_float(entry_totals.other_additions),
            "absences": to_float(entry_totals.absences),
            "late": to_float(entry_totals.late),
            "advances": to_float(entry_totals.advances),
            "other_deductions": to_float(entry_totals.other_deductions),
            "seguro_ley": to_float(seguro_ley),
            "sales_commission_auto": to_float(automatic.commission_amount),
            "sales_amount_this_period": to_float(automatic.sales_amount),
            "sales_goal": to_float(automatic.goal),
            "sales_goal_reached": automatic.goal_reached,
            "sales_commission_source": source,
            "additions": to_float(additions),
            "deductions": to_float(deductions),
            "total": to_float(base + additions - deductions),
            "employee_exists": employee is not None,
        }

    # Self service

    def _history_for_employee(self, owner_id: UUID, employee_id: UUID) -> List[dict]:
        employee = self.get_employee(owner_id, employee_id)
        history = []

        for period in self.list_periods(owner_id):
            entries = self.list_entries(owner_id, period.id, employee_id)
            config = self.get_config(owner_id, period.id, employee_id)
            include_commissions = config.include_commissions if config else True
            automatic = self._automatic_commission(employee, include_commissions, period)

            if not (config or entries or automatic.sales_amount > 0 or automatic.commission_amount > 0):
                continue

            entry_totals = sum_entries(entries)
            commission = automatic.commission_amount if automatic.used_automatic else entry_totals.sales_commissions
            base = to_decimal(config.base_salary if config else None)
            seguro_ley = max(ZERO, to_decimal(employee.seguro_ley_monto if employee else None))
            benefits = entry_totals.other_additions + entry_totals.service_commissions
            gross = base + commission + entry_totals.bonuses + benefits
            deductions = (
                entry_totals.absences + entry_totals.late + entry_totals.advances
                + entry_totals.other_deductions + seguro_ley
            )

            history.append({
                "entry_id": str(entries[0].id) if entries else f"period_{period.id}",
                "employee_name": employee.nombre if employee else "",
                "period_id": period.id,
                "period_title": period.title,
                "period_start": period.start_date,
                "period_end": period.end_date,
                "period_status": period.status,
                "base_salary": to_float(base),
                "commission_from_sales": to_float(commission),
                "bonuses_amount": to_float(entry_totals.bonuses),
                "deductions_amount": to_float(deductions),
                "benefits_amount": to_float(benefits),
                "gross_total": to_float(gross),
                "net_total": to_float(gross - deductions),
                "seguro_ley_monto": to_float(seguro_ley),
                "sales_commission_auto": to_float(automatic.commission_amount),
                "sales_amount_this_period": to_float(automatic.sales_amount),
                "sales_goal": to_float(automatic.goal),
                "sales_goal_reached": automatic.goal_reached,
            })
        return history

    def _employees_for_user(self, owner_id: UUID, user: User, active_only: bool = False) -> List[PayrollEmployee]:
        """Empleado vinculado por id; si no hay, coincidencias por nombre y teléfono"""
        query = self.db.query(PayrollEmployee).filter(PayrollEmployee.owner_id == owner_id)
        if active_only:
            query = query.filter(PayrollEmployee.activo.is_(True))
        by_id = query.filter(PayrollEmployee.id == user.id).first()
        if by_id:
            return [by_id]

        query = query.filter(PayrollEmployee.nombre == user.nombre_completo)
        if (user.telefono or "").strip():
            query = query.filter(PayrollEmployee.telefono == user.telefono)
        return query.all()

    def my_history(self, user: User) -> List[dict]:
        """Historial de pagos del usuario, de la quincena más reciente a la más antigua"""
        owner_id = self.resolve_owner_id(user.id)
        rows = {}
        for employee in self._employees_for_user(owner_id, user):
            for row in self._history_for_employee(owner_id, employee.id):
                rows.setdefault(row["entry_id"], row)
        return sorted(rows.values(), key=lambda r: r["period_end"], reverse=True)

    def my_goal(self, actor: User, user_id: Optional[UUID] = None) -> dict:
        """Cuota mínima del usuario; ADMIN puede consultar la de otro usuario"""
        user = actor
        if user_id and user_id != actor.id and actor.is_admin:
            user = self.db.query(User).filter(User.id == user_id).first()
            if not user:
                return {"cuota_minima": 0.0}
        owner_id = self.resolve_owner_id(actor.id)
        employees = self._employees_for_user(owner_id, user, active_only=True)
        cuota = employees[0].cuota_minima if len(employees) == 1 else None
        return {"cuota_minima": to_float(cuota)}

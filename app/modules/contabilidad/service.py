import calendar
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.common.dates import (
    utc_now, as_utc, to_rd, is_same_rd_day, parse_date, parse_range, apply_range, rd_day_start
)
from app.common.money import to_decimal
from app.modules.auth.models import User, Role
from app.modules.contabilidad.models import (
    Close, CloseType, DepositOrder, DepositOrderStatus, FiscalInvoice, FiscalInvoiceKind,
    PayableService, PayablePayment, PayableFrequency
)
from app.modules.contabilidad.schemas import (
    CloseCreate, CloseUpdate, DepositOrderCreate, DepositOrderUpdate,
    FiscalInvoiceCreate, FiscalInvoiceUpdate,
    PayableServiceCreate, PayableServiceUpdate, PayablePaymentCreate
)

logger = logging.getLogger(__name__)

TRANSFER_BANKS = {"POPULAR", "BANRESERVAS", "BHD", "OTRO"}


def clean_text(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def normalize_transfer_bank(value: Optional[str]) -> Optional[str]:
    """Los bancos conocidos se guardan en mayúsculas; otros tal como vienen"""
    cleaned = clean_text(value)
    if cleaned is None:
        return None
    upper = cleaned.upper()
    return upper if upper in TRANSFER_BANKS else cleaned


def validate_transfer(transfer: Decimal, transfer_bank: Optional[str]) -> None:
    if transfer > 0 and clean_text(transfer_bank) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cuando hay transferencia debes indicar banco y monto"
        )


def add_months_keeping_day(value: datetime, months: int) -> datetime:
    """Suma meses en hora RD; el día se ajusta al último del mes destino"""
    local = to_rd(value)
    month_index = local.month - 1 + months
    year = local.year + month_index // 12
    month = month_index % 12 + 1
    day = min(local.day, calendar.monthrange(year, month)[1])
    return as_utc(local.replace(year=year, month=month, day=day))


def next_due_date_from(frequency: PayableFrequency, paid_at: datetime) -> datetime:
    if frequency == PayableFrequency.MONTHLY:
        return add_months_keeping_day(paid_at, 1)
    if frequency == PayableFrequency.BIWEEKLY:
        return as_utc(paid_at) + timedelta(days=15)
    return as_utc(paid_at)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ContabilidadService:
    """Cierres de caja, órdenes de depósito, facturas fiscales y cuentas por pagar"""

    def __init__(self, db: Session):
        self.db = db

    # Closes

    def _check_assistant_window(self, close: Close, actor: User, action: str) -> None:
        """ASISTENTE solo toca cierres propios creados el mismo día (hora RD)"""
        if actor.role == Role.ADMIN:
            return
        is_owner = close.created_by_id == actor.id
        if not is_owner or not is_same_rd_day(close.created_at, utc_now()):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"El asistente solo puede {action} cierres propios creados el mismo día"
            )

    def create_close(self, data: CloseCreate, actor: User) -> Close:
        validate_transfer(data.transfer, data.transfer_bank)
        close = Close(
            type=data.type,
            date=data.date or utc_now(),
            status=data.status.strip(),
            cash=data.cash,
            transfer=data.transfer,
            transfer_bank=normalize_transfer_bank(data.transfer_bank),
            card=data.card,
            expenses=data.expenses,
            cash_delivered=data.cash_delivered,
            created_by_id=actor.id,
            created_by_name=actor.nombre_completo
        )
        self.db.add(close)
        self.db.commit()
        self.db.refresh(close)
        logger.info(f"Cierre {close.type.value} registrado por {actor.id}")
        return close

    def list_closes(
        self,
        date: Optional[str] = None,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        close_type: Optional[str] = None
    ) -> List[Close]:
        query = self.db.query(Close)

        if date:
            day = parse_date(date, "date")
            query = query.filter(
                Close.date >= rd_day_start(day),
                Close.date < rd_day_start(day + timedelta(days=1))
            )
        else:
            query = apply_range(query, Close.date, parse_range(from_, to))

        normalized = (close_type or "").strip().upper()
        if normalized in CloseType.__members__:
            query = query.filter(Close.type == CloseType(normalized))

        return query.order_by(Close.date.desc(), Close.created_at.desc()).all()

    def get_close(self, close_id: UUID) -> Close:
        close = self.db.query(Close).filter(Close.id == close_id).first()
        if not close:
            raise _not_found("Cierre no encontrado")
        return close

    def update_close(self, close_id: UUID, data: CloseUpdate, actor: User) -> Close:
        close = self.get_close(close_id)
        self._check_assistant_window(close, actor, "editar")

        update_data = data.model_dump(exclude_unset=True)
        next_transfer = to_decimal(update_data.get("transfer") if update_data.get("transfer") is not None else close.transfer)
        bank_given = "transfer_bank" in update_data
        next_bank = update_data.pop("transfer_bank", None) if bank_given else close.transfer_bank
        validate_transfer(next_transfer, next_bank)

        for field, value in update_data.items():
            if value is not None:
                setattr(close, field, value.strip() if isinstance(value, str) else value)

        if bank_given or "transfer" in update_data:
            close.transfer_bank = normalize_transfer_bank(next_bank) if next_transfer > 0 else None

        self.db.commit()
        self.db.refresh(close)
        return close

    def delete_close(self, close_id: UUID, actor: User) -> dict:
        close = self.get_close(close_id)
        self._check_assistant_window(close, actor, "borrar")
        self.db.delete(close)
        self.db.commit()
        logger.info(f"Cierre {close_id} eliminado por {actor.id}")
        return {"ok": True}

    # Deposit orders

    def create_deposit_order(self, data: DepositOrderCreate, actor: User) -> DepositOrder:
        if data.window_to < data.window_from:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La ventana de depósito es inválida"
            )
        order = DepositOrder(
            window_from=data.window_from,
            window_to=data.window_to,
            bank_name=data.bank_name.strip(),
            reserve_amount=data.reserve_amount,
            total_available_cash=data.total_available_cash,
            deposit_total=data.deposit_total,
            closes_count_by_type=data.closes_count_by_type,
            deposit_by_type=data.deposit_by_type,
            account_by_type=data.account_by_type,
            status=DepositOrderStatus.PENDING,
            created_by_id=actor.id,
            created_by_name=actor.nombre_completo
        )
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def list_deposit_orders(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        order_status: Optional[DepositOrderStatus] = None
    ) -> List[DepositOrder]:
        query = apply_range(self.db.query(DepositOrder), DepositOrder.window_from, parse_range(from_, to))
        if order_status:
            query = query.filter(DepositOrder.status == order_status)
        return query.order_by(DepositOrder.created_at.desc()).all()

    def get_deposit_order(self, order_id: UUID) -> DepositOrder:
        order = self.db.query(DepositOrder).filter(DepositOrder.id == order_id).first()
        if not order:
            raise _not_found("Orden de depósito no encontrada")
        return order

    def update_deposit_order(self, order_id: UUID, data: DepositOrderUpdate) -> DepositOrder:
        order = self.get_deposit_order(order_id)
        if data.status is not None:
            order.status = data.status
        if data.bank_name is not None:
            order.bank_name = data.bank_name.strip()
        self.db.commit()
        self.db.refresh(order)
        return order

    def delete_deposit_order(self, order_id: UUID) -> dict:
        order = self.get_deposit_order(order_id)
        self.db.delete(order)
        self.db.commit()
        return {"ok": True}

    # Fiscal invoices

    def create_fiscal_invoice(self, data: FiscalInvoiceCreate, actor: User) -> FiscalInvoice:
        invoice = FiscalInvoice(
            kind=data.kind,
            invoice_date=data.invoice_date,
            image_url=data.image_url.strip(),
            note=clean_text(data.note),
            created_by_id=actor.id,
            created_by_name=actor.nombre_completo
        )
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def list_fiscal_invoices(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        kind: Optional[FiscalInvoiceKind] = None
    ) -> List[FiscalInvoice]:
        query = apply_range(self.db.query(FiscalInvoice), FiscalInvoice.invoice_date, parse_range(from_, to))
        if kind:
            query = query.filter(FiscalInvoice.kind == kind)
        return query.order_by(FiscalInvoice.invoice_date.desc(), FiscalInvoice.created_at.desc()).all()

    def get_fiscal_invoice(self, invoice_id: UUID) -> FiscalInvoice:
        invoice = self.db.query(FiscalInvoice).filter(FiscalInvoice.id == invoice_id).first()
        if not invoice:
            raise _not_found("Factura fiscal no encontrada")
        return invoice

    def update_fiscal_invoice(self, invoice_id: UUID, data: FiscalInvoiceUpdate) -> FiscalInvoice:
        invoice = self.get_fiscal_invoice(invoice_id)
        if data.kind is not None:
            invoice.kind = data.kind
        if data.invoice_date is not None:
            invoice.invoice_date = data.invoice_date
        if data.image_url is not None:
            invoice.image_url = data.image_url.strip()
        if data.note is not None:
            invoice.note = clean_text(data.note)
        self.db.commit()
        self.db.refresh(invoice)
        return invoice

    def delete_fiscal_invoice(self, invoice_id: UUID) -> dict:
        invoice = self.get_fiscal_invoice(invoice_id)
        self.db.delete(invoice)
        self.db.commit()
        return {"ok": True}

    # Payables

    def _payables_query(self):
        return self.db.query(PayableService).options(selectinload(PayableService.payments))

    def create_payable_service(self, data: PayableServiceCreate, actor: User) -> PayableService:
        service = PayableService(
            title=data.title.strip(),
            provider_kind=data.provider_kind,
            provider_name=data.provider_name.strip(),
            description=clean_text(data.description),
            frequency=data.frequency,
            default_amount=data.default_amount,
            next_due_date=data.next_due_date,
            active=True if data.active is None else data.active,
            created_by_id=actor.id,
            created_by_name=actor.nombre_completo
        )
        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)
        return service

    def list_payable_services(self, active: Optional[bool] = None) -> List[PayableService]:
        query = self._payables_query()
        if active is not None:
            query = query.filter(PayableService.active.is_(active))
        return query.order_by(
            PayableService.active.desc(),
            PayableService.next_due_date.asc(),
            PayableService.created_at.desc()
        ).all()

    def get_payable_service(self, service_id: UUID) -> PayableService:
        service = self._payables_query().filter(PayableService.id == service_id).first()
        if not service:
            raise _not_found("Servicio por pagar no encontrado")
        return service

    def update_payable_service(self, service_id: UUID, data: PayableServiceUpdate) -> PayableService:
        service = self.get_payable_service(service_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field == "description":
                value = clean_text(value)
            elif isinstance(value, str):
                value = value.strip()
            setattr(service, field, value)
        self.db.commit()
        self.db.refresh(service)
        return service

    def delete_payable_service(self, service_id: UUID) -> dict:
        service = self.get_payable_service(service_id)
        self.db.delete(service)
        self.db.commit()
        return {"ok": True}

    def register_payment(self, service_id: UUID, data: PayablePaymentCreate, actor: User) -> PayablePayment:
        """
        Registra un pago y mueve el próximo vencimiento.

        MONTHLY avanza un mes, BIWEEKLY quince días y ONE_TIME desactiva el
        servicio. Pago y servicio se guardan en la misma transacción.
        """
        service = self.get_payable_service(service_id)
        paid_at = as_utc(data.paid_at) if data.paid_at else utc_now()

        payment = PayablePayment(
            service_id=service.id,
            amount=data.amount,
            paid_at=paid_at,
            note=clean_text(data.note),
            created_by_id=actor.id,
            created_by_name=actor.nombre_completo
        )
        self.db.add(payment)

        service.last_paid_at = paid_at
        service.next_due_date = next_due_date_from(PayableFrequency(service.frequency), paid_at)
        service.active = service.frequency != PayableFrequency.ONE_TIME

        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(payment)
        logger.info(f"Pago registrado para servicio {service.id}: {data.amount}")
        return payment

    def list_payments(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        service_id: Optional[UUID] = None
    ) -> List[PayablePayment]:
        query = self.db.query(PayablePayment).options(selectinload(PayablePayment.service))
        if service_id:
            query = query.filter(PayablePayment.service_id == service_id)
        query = apply_range(query, PayablePayment.paid_at, parse_range(from_, to))
        return query.order_by(PayablePayment.paid_at.desc(), PayablePayment.created_at.desc()).all()

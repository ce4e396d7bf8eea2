from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from app.common.uploads import MB, save_upload
from app.dependencies.dbDependecies import db_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.contabilidad.models import DepositOrderStatus, FiscalInvoiceKind
from app.modules.contabilidad.schemas import (
    CloseCreate, CloseUpdate, CloseOut,
    DepositOrderCreate, DepositOrderUpdate, DepositOrderOut,
    FiscalInvoiceCreate, FiscalInvoiceUpdate, FiscalInvoiceOut,
    PayableServiceCreate, PayableServiceUpdate, PayableServiceOut,
    PayablePaymentCreate, PayablePaymentWithService
)
from app.modules.contabilidad.service import ContabilidadService

contabilidad_router = APIRouter()

ACCOUNTING_ROLES = ["ADMIN", "ASISTENTE"]
require_accounting = AuthDependencies.require_role(ACCOUNTING_ROLES)


# Closes

@contabilidad_router.post("/closes", response_model=CloseOut, status_code=status.HTTP_201_CREATED)
def create_close(body: CloseCreate, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).create_close(body, current_user)


@contabilidad_router.get("/closes", response_model=List[CloseOut])
def list_closes(
    db: db_dependency,
    date: Optional[str] = None,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    close_type: Optional[str] = Query(None, alias="type"),
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).list_closes(date, from_, to, close_type)


@contabilidad_router.get("/closes/{close_id}", response_model=CloseOut)
def get_close(close_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).get_close(close_id)


@contabilidad_router.put("/closes/{close_id}", response_model=CloseOut)
def update_close(close_id: UUID, body: CloseUpdate, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).update_close(close_id, body, current_user)


@contabilidad_router.delete("/closes/{close_id}")
def delete_close(close_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).delete_close(close_id, current_user)


# Deposit orders

@contabilidad_router.post("/deposit-orders", response_model=DepositOrderOut, status_code=status.HTTP_201_CREATED)
def create_deposit_order(body: DepositOrderCreate, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).create_deposit_order(body, current_user)


@contabilidad_router.get("/deposit-orders", response_model=List[DepositOrderOut])
def list_deposit_orders(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    order_status: Optional[DepositOrderStatus] = Query(None, alias="status"),
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).list_deposit_orders(from_, to, order_status)


@contabilidad_router.get("/deposit-orders/{order_id}", response_model=DepositOrderOut)
def get_deposit_order(order_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).get_deposit_order(order_id)


@contabilidad_router.put("/deposit-orders/{order_id}", response_model=DepositOrderOut)
def update_deposit_order(
    order_id: UUID,
    body: DepositOrderUpdate,
    db: db_dependency,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).update_deposit_order(order_id, body)


@contabilidad_router.delete("/deposit-orders/{order_id}")
def delete_deposit_order(order_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).delete_deposit_order(order_id)


# Fiscal invoices

@contabilidad_router.post("/fiscal-invoices/upload")
async def upload_fiscal_invoice_image(
    request: Request,
    file: UploadFile = File(...),
    current_user = Depends(require_accounting)
):
    return await save_upload(request, file, max_bytes=8 * MB, prefix="fiscal-")


@contabilidad_router.post("/fiscal-invoices", response_model=FiscalInvoiceOut, status_code=status.HTTP_201_CREATED)
def create_fiscal_invoice(body: FiscalInvoiceCreate, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).create_fiscal_invoice(body, current_user)


@contabilidad_router.get("/fiscal-invoices", response_model=List[FiscalInvoiceOut])
def list_fiscal_invoices(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    kind: Optional[FiscalInvoiceKind] = None,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).list_fiscal_invoices(from_, to, kind)


@contabilidad_router.get("/fiscal-invoices/{invoice_id}", response_model=FiscalInvoiceOut)
def get_fiscal_invoice(invoice_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).get_fiscal_invoice(invoice_id)


@contabilidad_router.put("/fiscal-invoices/{invoice_id}", response_model=FiscalInvoiceOut)
def update_fiscal_invoice(
    invoice_id: UUID,
    body: FiscalInvoiceUpdate,
    db: db_dependency,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).update_fiscal_invoice(invoice_id, body)


@contabilidad_router.delete("/fiscal-invoices/{invoice_id}")
def delete_fiscal_invoice(invoice_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).delete_fiscal_invoice(invoice_id)


# Payables

@contabilidad_router.post("/payables/services", response_model=PayableServiceOut, status_code=status.HTTP_201_CREATED)
def create_payable_service(body: PayableServiceCreate, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).create_payable_service(body, current_user)


@contabilidad_router.get("/payables/services", response_model=List[PayableServiceOut])
def list_payable_services(
    db: db_dependency,
    active: Optional[bool] = None,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).list_payable_services(active)


@contabilidad_router.get("/payables/services/{service_id}", response_model=PayableServiceOut)
def get_payable_service(service_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).get_payable_service(service_id)


@contabilidad_router.put("/payables/services/{service_id}", response_model=PayableServiceOut)
def update_payable_service(
    service_id: UUID,
    body: PayableServiceUpdate,
    db: db_dependency,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).update_payable_service(service_id, body)


@contabilidad_router.delete("/payables/services/{service_id}")
def delete_payable_service(service_id: UUID, db: db_dependency, current_user = Depends(require_accounting)):
    return ContabilidadService(db).delete_payable_service(service_id)


@contabilidad_router.post(
    "/payables/services/{service_id}/payments",
    response_model=PayablePaymentWithService,
    status_code=status.HTTP_201_CREATED
)
def register_payment(
    service_id: UUID,
    body: PayablePaymentCreate,
    db: db_dependency,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).register_payment(service_id, body, current_user)


@contabilidad_router.get("/payables/payments", response_model=List[PayablePaymentWithService])
def list_payments(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    service_id: Optional[UUID] = None,
    current_user = Depends(require_accounting)
):
    return ContabilidadService(db).list_payments(from_, to, service_id)

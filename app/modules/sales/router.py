from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.sales.schemas import (
    SaleCreate, SaleUpdate, SaleItemCreate, SaleItemUpdate, SaleOut, SalesSummary, AdminSalesSummary
)
from app.modules.sales.service import SaleService

sales_router = APIRouter()
admin_sales_router = APIRouter()


@sales_router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
def create_sale(body: SaleCreate, db: db_dependency, current_user: user_dependency):
    return SaleService(db).create_sale(current_user, body)


@sales_router.get("/me", response_model=List[SaleOut])
def list_my_sales(
    db: db_dependency,
    current_user: user_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None
):
    return SaleService(db).list_mine(current_user, from_, to)


@sales_router.get("/me/summary", response_model=SalesSummary)
def my_sales_summary(
    db: db_dependency,
    current_user: user_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None
):
    return SaleService(db).summary_mine(current_user, from_, to)


@sales_router.get("/{sale_id}", response_model=SaleOut)
def get_sale(sale_id: UUID, db: db_dependency, current_user: user_dependency):
    return SaleService(db).find_for_user(current_user, sale_id)


@sales_router.put("/{sale_id}", response_model=SaleOut)
def update_sale(sale_id: UUID, body: SaleUpdate, db: db_dependency, current_user: user_dependency):
    return SaleService(db).update_sale(current_user, sale_id, body)


@sales_router.delete("/{sale_id}")
def delete_sale(sale_id: UUID, db: db_dependency, current_user: user_dependency):
    return SaleService(db).delete_sale(current_user, sale_id)


@sales_router.post("/{sale_id}/items", response_model=SaleOut)
def add_sale_item(sale_id: UUID, body: SaleItemCreate, db: db_dependency, current_user: user_dependency):
    return SaleService(db).add_item(current_user, sale_id, body)


@sales_router.put("/{sale_id}/items/{item_id}", response_model=SaleOut)
def update_sale_item(
    sale_id: UUID,
    item_id: UUID,
    body: SaleItemUpdate,
    db: db_dependency,
    current_user: user_dependency
):
    return SaleService(db).update_item(current_user, sale_id, item_id, body)


@sales_router.delete("/{sale_id}/items/{item_id}", response_model=SaleOut)
def remove_sale_item(sale_id: UUID, item_id: UUID, db: db_dependency, current_user: user_dependency):
    return SaleService(db).remove_item(current_user, sale_id, item_id)


@admin_sales_router.get("", response_model=List[SaleOut])
def admin_list_sales(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    seller_id: Optional[UUID] = None,
    product_id: Optional[UUID] = None,
    client_id: Optional[UUID] = None,
    current_user = Depends(AuthDependencies.require_admin())
):
    return SaleService(db).admin_list(from_, to, seller_id, product_id, client_id)


@admin_sales_router.get("/summary", response_model=AdminSalesSummary)
def admin_sales_summary(
    db: db_dependency,
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = None,
    seller_id: Optional[UUID] = None,
    current_user = Depends(AuthDependencies.require_admin())
):
    return SaleService(db).admin_summary(from_, to, seller_id)


@admin_sales_router.get("/{sale_id}", response_model=SaleOut)
def admin_get_sale(sale_id: UUID, db: db_dependency, current_user = Depends(AuthDependencies.require_admin())):
    return SaleService(db).admin_get(sale_id)

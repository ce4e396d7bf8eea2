import logging
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.common.dates import utc_now, parse_range, apply_range
from app.common.money import money, to_decimal, to_float
from app.modules.auth.models import User, Role
from app.modules.clients.models import Client
from app.modules.products.models import Product
from app.modules.sales.models import Sale, SaleItem, COMMISSION_RATE
from app.modules.sales.schemas import (
    SaleCreate, SaleUpdate, SaleItemCreate, SaleItemUpdate,
    SalesSummary, AdminSalesSummary, UserSalesSummary, SummaryTotals
)

logger = logging.getLogger(__name__)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def build_item_values(item: SaleItemCreate, index: int, products: Dict[UUID, Product]) -> dict:
    """
    Valida un item y calcula subtotales.

    Args:
        item: Item recibido
        index: Posición en la venta (0-based, los mensajes usan 1-based)
        products: Productos del inventario referenciados por la venta

    Returns:
        dict con los valores de SaleItem
    """
    n = index + 1
    qty = to_decimal(item.qty)
    price = to_decimal(item.price_sold_unit)

    if qty <= 0:
        raise _bad_request(f"Cantidad inválida en item #{n}")
    if price < 0:
        raise _bad_request(f"Precio inválido en item #{n}")

    if item.product_id:
        product = products.get(item.product_id)
        if not product:
            raise _bad_request(f"Producto inválido en item #{n}")
        product_id = product.id
        name = product.nombre
        image = product.imagen
        cost = to_decimal(product.costo)
    else:
        name = (item.product_name or "").strip()
        if not name:
            raise _bad_request(f"Nombre requerido para item fuera de inventario #{n}")
        if item.cost_unit_snapshot is None:
            raise _bad_request(f"Costo unitario requerido en item fuera de inventario #{n}")
        cost = to_decimal(item.cost_unit_snapshot)
        if cost < 0:
            raise _bad_request(f"Costo inválido en item #{n}")
        product_id = None
        image = None

    subtotal_sold = money(qty * price)
    subtotal_cost = money(qty * cost)
    return {
        "product_id": product_id,
        "product_name_snapshot": name,
        "product_image_snapshot": image,
        "qty": qty,
        "price_sold_unit": price,
        "cost_unit_snapshot": cost,
        "subtotal_sold": subtotal_sold,
        "subtotal_cost": subtotal_cost,
        "profit": subtotal_sold - subtotal_cost,
    }


def compute_sale_totals(items: List) -> dict:
    """Totales de la venta; la comisión solo aplica sobre ganancia positiva."""
    def read(item, key):
        return to_decimal(item[key] if isinstance(item, dict) else getattr(item, key))

    total_sold = sum((read(i, "subtotal_sold") for i in items), Decimal("0"))
    total_cost = sum((read(i, "subtotal_cost") for i in items), Decimal("0"))
    total_profit = sum((read(i, "profit") for i in items), Decimal("0"))
    commission = money(total_profit * COMMISSION_RATE) if total_profit > 0 else Decimal("0.00")
    return {
        "total_sold": money(total_sold),
        "total_cost": money(total_cost),
        "total_profit": money(total_profit),
        "commission_rate": COMMISSION_RATE,
        "commission_amount": commission,
    }


class SaleService:
    """Servicio de ventas con comisión sobre ganancia"""

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Sale).options(
            selectinload(Sale.items),
            selectinload(Sale.customer),
            selectinload(Sale.user)
        )

    def _validate_customer(self, customer_id: Optional[UUID]) -> Client:
        if not customer_id:
            raise _bad_request("Debes seleccionar un cliente")
        customer = self.db.query(Client).filter(
            Client.id == customer_id,
            Client.is_deleted.is_(False)
        ).first()
        if not customer:
            raise _bad_request("Cliente inválido")
        return customer

    def _load_products(self, items: List[SaleItemCreate]) -> Dict[UUID, Product]:
        ids = {i.product_id for i in items if i.product_id}
        if not ids:
            return {}
        products = self.db.query(Product).filter(Product.id.in_(ids)).all()
        return {p.id: p for p in products}

    def _recompute(self, sale: Sale) -> None:
        for field, value in compute_sale_totals(sale.items).items():
            setattr(sale, field, value)

    def _get_active_sale(self, sale_id: UUID) -> Sale:
        sale = self._base_query().filter(Sale.id == sale_id).first()
        if not sale or sale.is_deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venta no encontrada")
        return sale

    def _assert_can_modify(self, user: User, sale: Sale, action: str) -> None:
        if user.role != Role.ADMIN and sale.user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"No puedes {action} esta venta"
            )

    def create_sale(self, user: User, data: SaleCreate) -> Sale:
        """
        Registrar venta con sus items en una sola transacción

        Args:
            user: Vendedor autenticado
            data: Cliente, nota e items

        Returns:
            Sale: Venta creada con items y cliente
        """
        if not data.items:
            raise _bad_request("La venta requiere al menos 1 item")
        self._validate_customer(data.customer_id)

        products = self._load_products(data.items)
        item_values = [build_item_values(item, i, products) for i, item in enumerate(data.items)]
        totals = compute_sale_totals(item_values)

        try:
            sale = Sale(
                user_id=user.id,
                customer_id=data.customer_id,
                sale_date=utc_now(),
                note=data.note,
                **totals
            )
            sale.items = [SaleItem(**values) for values in item_values]
            self.db.add(sale)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad en base de datos"
            )

        logger.info(f"Venta {sale.id} registrada por {user.id}: total={totals['total_sold']}")
        return self._get_active_sale(sale.id)

    def list_mine(self, user: User, from_: Optional[str] = None, to: Optional[str] = None) -> List[Sale]:
        query = self._base_query().filter(Sale.user_id == user.id, Sale.is_deleted.is_(False))
        query = apply_range(query, Sale.sale_date, parse_range(from_, to))
        return query.order_by(Sale.sale_date.desc()).all()

    def summary_mine(self, user: User, from_: Optional[str] = None, to: Optional[str] = None) -> SalesSummary:
        query = self.db.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_sold), 0),
            func.coalesce(func.sum(Sale.total_cost), 0),
            func.coalesce(func.sum(Sale.total_profit), 0),
            func.coalesce(func.sum(Sale.commission_amount), 0)
        ).filter(Sale.user_id == user.id, Sale.is_deleted.is_(False))
        query = apply_range(query, Sale.sale_date, parse_range(from_, to))
        count, sold, cost, profit, commission = query.one()
        return SalesSummary(
            total_sales=count,
            total_sold=to_float(sold),
            total_cost=to_float(cost),
            total_profit=to_float(profit),
            total_commission=to_float(commission),
            commission_rate=to_float(COMMISSION_RATE)
        )

    def find_for_user(self, user: User, sale_id: UUID) -> Sale:
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "ver")
        return sale

    def update_sale(self, user: User, sale_id: UUID, data: SaleUpdate) -> Sale:
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "editar")
        values = data.model_dump(exclude_unset=True)
        if "customer_id" in values:
            self._validate_customer(values["customer_id"])
            sale.customer_id = values["customer_id"]
        if "note" in values:
            sale.note = values["note"]
        self.db.commit()
        return self._get_active_sale(sale_id)

    def delete_sale(self, user: User, sale_id: UUID) -> dict:
        """Soft delete; guarda quién eliminó."""
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "eliminar")
        sale.soft_delete()
        sale.deleted_by_id = user.id
        self.db.commit()
        logger.info(f"Venta {sale.id} eliminada por {user.id}")
        return {"ok": True}

    def add_item(self, user: User, sale_id: UUID, data: SaleItemCreate) -> Sale:
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "editar")
        values = build_item_values(data, len(sale.items), self._load_products([data]))
        sale.items.append(SaleItem(**values))
        self._recompute(sale)
        self.db.commit()
        return self._get_active_sale(sale_id)

    def _get_item(self, sale: Sale, item_id: UUID) -> SaleItem:
        for item in sale.items:
            if item.id == item_id:
                return item
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item no encontrado")

    def update_item(self, user: User, sale_id: UUID, item_id: UUID, data: SaleItemUpdate) -> Sale:
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "editar")
        item = self._get_item(sale, item_id)
        n = sale.items.index(item) + 1

        qty = to_decimal(data.qty) if data.qty is not None else to_decimal(item.qty)
        price = to_decimal(data.price_sold_unit) if data.price_sold_unit is not None else to_decimal(item.price_sold_unit)
        if qty <= 0:
            raise _bad_request(f"Cantidad inválida en item #{n}")
        if price < 0:
            raise _bad_request(f"Precio inválido en item #{n}")

        item.qty = qty
        item.price_sold_unit = price
        item.subtotal_sold = money(qty * price)
        item.subtotal_cost = money(qty * to_decimal(item.cost_unit_snapshot))
        item.profit = item.subtotal_sold - item.subtotal_cost
        self._recompute(sale)
        self.db.commit()
        return self._get_active_sale(sale_id)

    def remove_item(self, user: User, sale_id: UUID, item_id: UUID) -> Sale:
        sale = self._get_active_sale(sale_id)
        self._assert_can_modify(user, sale, "editar")
        item = self._get_item(sale, item_id)
        sale.items.remove(item)
        self._recompute(sale)
        self.db.commit()
        return self._get_active_sale(sale_id)

    def admin_list(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        seller_id: Optional[UUID] = None,
        product_id: Optional[UUID] = None,
        client_id: Optional[UUID] = None
    ) -> List[Sale]:
        query = self._base_query().filter(Sale.is_deleted.is_(False))
        query = apply_range(query, Sale.sale_date, parse_range(from_, to))
        if seller_id:
            query = query.filter(Sale.user_id == seller_id)
        if client_id:
            query = query.filter(Sale.customer_id == client_id)
        if product_id:
            query = query.filter(Sale.items.any(SaleItem.product_id == product_id))
        return query.order_by(Sale.sale_date.desc()).all()

    def admin_summary(
        self,
        from_: Optional[str] = None,
        to: Optional[str] = None,
        seller_id: Optional[UUID] = None
    ) -> AdminSalesSummary:
        """Resumen agrupado por vendedor más totales generales."""
        query = self.db.query(
            Sale.user_id,
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.total_sold), 0),
            func.coalesce(func.sum(Sale.total_profit), 0),
            func.coalesce(func.sum(Sale.commission_amount), 0)
        ).filter(Sale.is_deleted.is_(False))
        query = apply_range(query, Sale.sale_date, parse_range(from_, to))
        if seller_id:
            query = query.filter(Sale.user_id == seller_id)
        grouped = query.group_by(Sale.user_id).all()

        user_ids = [row[0] for row in grouped]
        users = {}
        if user_ids:
            users = {u.id: u for u in self.db.query(User).filter(User.id.in_(user_ids)).all()}

        items = []
        for user_id, count, sold, profit, commission in grouped:
            user = users.get(user_id)
            items.append(UserSalesSummary(
                user_id=user_id,
                user_name=user.nombre_completo if user else "Usuario",
                user_email=user.email if user else "",
                total_sales=count,
                total_sold=to_float(sold),
                total_profit=to_float(profit),
                total_commission=to_float(commission)
            ))
        items.sort(key=lambda row: row.total_sold, reverse=True)

        totals = SummaryTotals(
            total_sales=sum(i.total_sales for i in items),
            total_sold=round(sum(i.total_sold for i in items), 2),
            total_profit=round(sum(i.total_profit for i in items), 2),
            total_commission=round(sum(i.total_commission for i in items), 2)
        )
        return AdminSalesSummary(items=items, totals=totals, commission_rate=to_float(COMMISSION_RATE))

    def admin_get(self, sale_id: UUID) -> Sale:
        return self._get_active_sale(sale_id)

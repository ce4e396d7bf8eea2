from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from app.common.money import money, to_decimal
from app.modules.auth.models import User, Role
from app.modules.cotizaciones.models import Cotizacion, CotizacionItem
from app.modules.cotizaciones.schemas import CotizacionCreate, CotizacionUpdate, CotizacionItemCreate
from app.modules.products.models import Product

DEFAULT_ITBIS_RATE = 0.18


def clamp_itbis_rate(value: Optional[float]) -> Decimal:
    raw = DEFAULT_ITBIS_RATE if value is None else value
    return to_decimal(max(0.0, min(float(raw), 1.0)))


def compute_quote_totals(line_totals: List[Decimal], include_itbis: bool, itbis_rate: Decimal) -> dict:
    """subtotal = suma de líneas; el ITBIS solo se suma si está incluido."""
    subtotal = money(sum(line_totals, Decimal("0")))
    itbis_amount = money(subtotal * itbis_rate) if include_itbis else Decimal("0.00")
    return {
        "subtotal": subtotal,
        "itbis_amount": itbis_amount,
        "total": subtotal + itbis_amount,
    }


def _as_uuid(value: Optional[str]) -> Optional[UUID]:
    try:
        return UUID(str(value)) if value else None
    except ValueError:
        return None


class CotizacionService:
    """Servicio de cotizaciones (tickets de precio)"""

    def __init__(self, db: Session):
        self.db = db

    def _normalize_items(self, items: List[CotizacionItemCreate]) -> List[dict]:
        ids = {_as_uuid(i.product_id) for i in items} - {None}
        products: Dict[str, Product] = {}
        if ids:
            products = {str(p.id): p for p in self.db.query(Product).filter(Product.id.in_(ids)).all()}

        normalized = []
        for index, item in enumerate(items):
            n = index + 1
            qty = to_decimal(item.qty)
            unit_price = to_decimal(item.unit_price)
            if qty <= 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Cantidad inválida en item #{n}")
            if unit_price < 0:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Precio inválido en item #{n}")

            product = products.get(str(_as_uuid(item.product_id))) if item.product_id else None
            name = product.nombre if product else (item.product_name or "").strip()
            if not name:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Nombre requerido en item #{n}")

            normalized.append({
                "product_id": str(product.id) if product else item.product_id,
                "product_name_snapshot": name,
                "product_image_snapshot": (product.imagen if product and product.imagen else item.product_image_snapshot),
                "qty": qty,
                "unit_price": unit_price,
                "line_total": money(qty * unit_price),
            })
        return normalized

    def _get(self, cotizacion_id: UUID) -> Cotizacion:
        cotizacion = self.db.query(Cotizacion).options(selectinload(Cotizacion.items)).filter(
            Cotizacion.id == cotizacion_id
        ).first()
        if not cotizacion:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cotización no encontrada")
        return cotizacion

    def _get_for_user(self, user: User, cotizacion_id: UUID, action: str) -> Cotizacion:
        cotizacion = self._get(cotizacion_id)
        if user.role != Role.ADMIN and cotizacion.created_by_user_id != user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"No puedes {action} esta cotización"
            )
        return cotizacion

    def list_cotizaciones(self, user: User, customer_phone: Optional[str] = None, take: int = 80) -> dict:
        take = min(max(take or 80, 1), 500)
        query = self.db.query(Cotizacion).options(selectinload(Cotizacion.items))
        phone = (customer_phone or "").strip()
        if phone:
            query = query.filter(Cotizacion.customer_phone == phone)
        if user.role != Role.ADMIN:
            query = query.filter(Cotizacion.created_by_user_id == user.id)
        return {"items": query.order_by(Cotizacion.created_at.desc()).limit(take).all()}

    def get_cotizacion(self, user: User, cotizacion_id: UUID) -> Cotizacion:
        return self._get_for_user(user, cotizacion_id, "ver")

    def create_cotizacion(self, user: User, data: CotizacionCreate) -> Cotizacion:
        """
        Crear cotización con ITBIS opcional

        Args:
            user: Usuario que cotiza
            data: Cliente, items y configuración de ITBIS

        Returns:
            Cotizacion: Cotización con items
        """
        if not data.items:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Agrega al menos un producto al ticket")
        phone = (data.customer_phone or "").strip()
        name = (data.customer_name or "").strip()
        if not phone:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Teléfono requerido")
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nombre de cliente requerido")

        itbis_rate = clamp_itbis_rate(data.itbis_rate)
        items = self._normalize_items(data.items)
        totals = compute_quote_totals([i["line_total"] for i in items], data.include_itbis, itbis_rate)

        note = (data.note or "").strip()
        cotizacion = Cotizacion(
            created_by_user_id=user.id,
            customer_id=data.customer_id,
            customer_name=name,
            customer_phone=phone,
            note=note or None,
            include_itbis=data.include_itbis,
            itbis_rate=itbis_rate,
            **totals
        )
        cotizacion.items = [CotizacionItem(**values) for values in items]
        self.db.add(cotizacion)
        self.db.commit()
        return self._get(cotizacion.id)

    def update_cotizacion(self, user: User, cotizacion_id: UUID, data: CotizacionUpdate) -> Cotizacion:
        """Actualiza datos; reemplaza items si vienen y recalcula totales."""
        cotizacion = self._get_for_user(user, cotizacion_id, "editar")
        values = data.model_dump(exclude_unset=True)

        if values.get("customer_id") is not None:
            cotizacion.customer_id = values["customer_id"]
        if (values.get("customer_name") or "").strip():
            cotizacion.customer_name = values["customer_name"].strip()
        if (values.get("customer_phone") or "").strip():
            cotizacion.customer_phone = values["customer_phone"].strip()
        if "note" in values:
            cotizacion.note = (values["note"] or "").strip() or None
        if values.get("include_itbis") is not None:
            cotizacion.include_itbis = values["include_itbis"]
        if values.get("itbis_rate") is not None:
            cotizacion.itbis_rate = clamp_itbis_rate(values["itbis_rate"])

        if data.items is not None:
            cotizacion.items = [CotizacionItem(**v) for v in self._normalize_items(data.items)]

        totals = compute_quote_totals(
            [to_decimal(i.line_total) for i in cotizacion.items],
            cotizacion.include_itbis,
            to_decimal(cotizacion.itbis_rate)
        )
        for field, value in totals.items():
            setattr(cotizacion, field, value)

        self.db.commit()
        return self._get(cotizacion.id)

    def delete_cotizacion(self, user: User, cotizacion_id: UUID) -> dict:
        cotizacion = self._get_for_user(user, cotizacion_id, "eliminar")
        self.db.delete(cotizacion)
        self.db.commit()
        return {"ok": True}

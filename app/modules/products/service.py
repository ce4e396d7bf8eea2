from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, Request, status
from uuid import UUID
from typing import Optional, List
import logging

import httpx

from app.core.config import settings
from app.common.uploads import public_base_url
from app.modules.auth.models import User, Role
from app.modules.products.models import Product
from app.modules.products.schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

FULLPOS_PAGE_LIMIT = 500
FULLPOS_MAX_PAGES = 50

READ_ONLY_MESSAGE = "Productos en modo solo-lectura: fuente FULLPOS (cloud). Administra productos en FULLPOS."


def can_see_cost(user: User) -> bool:
    return user.role in (Role.ADMIN, Role.ASISTENTE)


def normalize_image_path(value: Optional[str]) -> Optional[str]:
    """Extrae la ruta /uploads/... de una URL o ruta relativa."""
    raw = (value or "").strip()
    if not raw:
        return None
    idx = raw.find("/uploads/")
    if idx >= 0:
        return raw[idx:]
    if raw.startswith("uploads/"):
        return f"/{raw}"
    return None


def resolve_foto_url(imagen: Optional[str], request: Optional[Request]) -> Optional[str]:
    """URL pública de la imagen; las rutas de uploads usan la base pública."""
    if not imagen:
        return None
    path = normalize_image_path(imagen)
    if path is None:
        return imagen
    base = public_base_url(request)
    return f"{base}{path}" if base else path


def product_to_response(product: Product, include_cost: bool, request: Optional[Request] = None) -> dict:
    data = {
        "id": str(product.id),
        "nombre": product.nombre,
        "categoria": product.categoria,
        "categoria_nombre": product.categoria,
        "precio": product.precio,
        "imagen": product.imagen,
        "foto_url": resolve_foto_url(product.imagen, request),
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }
    if include_cost:
        data["costo"] = product.costo
    return data


def fetch_fullpos_products() -> List[dict]:
    """
    Lee el catálogo desde FULLPOS paginando por cursor.

    Returns:
        Lista de productos con la misma forma que el catálogo local
    """
    base_url = (settings.FULLPOS_INTEGRATION_BASE_URL or "").strip().rstrip("/")
    token = (settings.FULLPOS_INTEGRATION_TOKEN or "").strip()
    if not base_url:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="FULLPOS_INTEGRATION_BASE_URL no está configurado"
        )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="FULLPOS_INTEGRATION_TOKEN no está configurado"
        )

    items: List[dict] = []
    cursor = None
    headers = {"Accept": "application/json", "Authorization": f"Bearer {token}"}
    timeout = settings.FULLPOS_INTEGRATION_TIMEOUT_MS / 1000

    with httpx.Client(timeout=timeout) as client:
        for _ in range(FULLPOS_MAX_PAGES):
            params = {"limit": str(FULLPOS_PAGE_LIMIT)}
            if cursor:
                params["cursor"] = cursor
            try:
                response = client.get(f"{base_url}/api/integrations/products", params=params, headers=headers)
            except httpx.HTTPError as e:
                logger.warning(f"FULLPOS integrations/products no disponible: {e}")
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="No se pudieron cargar productos desde FULLPOS"
                )

            if response.status_code >= 400:
                logger.warning(
                    f"FULLPOS integrations/products falló: status={response.status_code} body={response.text[:200]}"
                )
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="No se pudieron cargar productos desde FULLPOS"
                )

            data = response.json() or {}
            batch = data.get("items") if isinstance(data.get("items"), list) else []
            items.extend(batch)
            cursor = data.get("next_cursor")
            if not cursor:
                break

    return [
        {
            "id": str(p.get("id")),
            "nombre": p.get("name"),
            "categoria": None,
            "categoria_nombre": None,
            "precio": p.get("price"),
            "costo": p.get("cost"),
            "imagen": p.get("image_url"),
            "foto_url": p.get("image_url"),
            "created_at": None,
            "updated_at": p.get("updated_at"),
        }
        for p in items
    ]


class ProductService:
    """Servicio de catálogo de productos (local o FULLPOS)"""

    def __init__(self, db: Session, request: Optional[Request] = None):
        self.db = db
        self.request = request

    @property
    def source(self) -> str:
        return settings.products_source

    @property
    def read_only(self) -> bool:
        return self.source == "FULLPOS"

    def _assert_writable(self):
        if self.read_only:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=READ_ONLY_MESSAGE)

    def list_products(self, user: User) -> List[dict]:
        include_cost = can_see_cost(user)
        if self.read_only:
            products = sorted(fetch_fullpos_products(), key=lambda p: (p["nombre"] or "").lower())
            if not include_cost:
                for p in products:
                    p.pop("costo", None)
            return products

        products = self.db.query(Product).order_by(Product.nombre.asc()).all()
        return [product_to_response(p, include_cost, self.request) for p in products]

    def get_product_model(self, product_id) -> Product:
        try:
            product_uuid = product_id if isinstance(product_id, UUID) else UUID(str(product_id))
        except ValueError:
            product_uuid = None
        product = None
        if product_uuid is not None:
            product = self.db.query(Product).filter(Product.id == product_uuid).first()
        if not product:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado")
        return product

    def get_product(self, product_id: str, user: User) -> dict:
        include_cost = can_see_cost(user)
        if self.read_only:
            for p in fetch_fullpos_products():
                if p["id"] == str(product_id):
                    if not include_cost:
                        p.pop("costo", None)
                    return p
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Producto no encontrado")
        return product_to_response(self.get_product_model(product_id), include_cost, self.request)

    def create_product(self, data: ProductCreate) -> dict:
        """
        Crear producto en el catálogo local

        Args:
            data: Datos del producto

        Returns:
            dict: Producto creado
        """
        self._assert_writable()
        try:
            product = Product(
                nombre=data.nombre.strip(),
                categoria=(data.categoria or "").strip() or None,
                precio=data.precio,
                costo=data.costo,
                imagen=normalize_image_path(data.imagen)
            )
            self.db.add(product)
            self.db.commit()
            self.db.refresh(product)
            return product_to_response(product, True, self.request)
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Error de integridad en base de datos"
            )

    def update_product(self, product_id: str, data: ProductUpdate) -> dict:
        self._assert_writable()
        product = self.get_product_model(product_id)
        values = data.model_dump(exclude_unset=True)
        if "imagen" in values:
            values["imagen"] = normalize_image_path(values["imagen"])
        if "categoria" in values:
            values["categoria"] = (values["categoria"] or "").strip() or None
        for field, value in values.items():
            if field in ("nombre", "precio", "costo") and value is None:
                continue
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product_to_response(product, True, self.request)

    def delete_product(self, product_id: str) -> dict:
        self._assert_writable()
        product = self.get_product_model(product_id)
        try:
            self.db.delete(product)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El producto está referenciado por otros registros"
            )
        return {"ok": True}

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from app.common.uploads import MB, save_upload
from app.dependencies.dbDependecies import db_dependency
from app.dependencies.userDependencies import user_dependency
from app.modules.auth.dependencies import AuthDependencies
from app.modules.products.schemas import ProductCreate, ProductUpdate
from app.modules.products.service import ProductService

product_router = APIRouter()

CATALOG_ADMINS = ["ADMIN", "ASISTENTE"]


@product_router.get("")
def list_products(request: Request, db: db_dependency, current_user: user_dependency):
    return ProductService(db, request).list_products(current_user)


@product_router.post("/upload")
async def upload_product_image(
    request: Request,
    file: UploadFile = File(...),
    current_user = Depends(AuthDependencies.require_role(CATALOG_ADMINS))
):
    return await save_upload(request, file, max_bytes=5 * MB)


@product_router.get("/{product_id}")
def get_product(product_id: str, request: Request, db: db_dependency, current_user: user_dependency):
    return ProductService(db, request).get_product(product_id, current_user)


@product_router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    request: Request,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(CATALOG_ADMINS))
):
    return ProductService(db, request).create_product(body)


@product_router.patch("/{product_id}")
def update_product(
    product_id: str,
    body: ProductUpdate,
    request: Request,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(CATALOG_ADMINS))
):
    return ProductService(db, request).update_product(product_id, body)


@product_router.delete("/{product_id}")
def delete_product(
    product_id: str,
    db: db_dependency,
    current_user = Depends(AuthDependencies.require_role(CATALOG_ADMINS))
):
    return ProductService(db).delete_product(product_id)

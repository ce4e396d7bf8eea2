from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles
import logging

# Import database components
from app.database.database import engine, Base

# Import middleware and error handlers
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.common.exceptions import register_exception_handlers
from app.common.uploads import ensure_upload_dir

# Import routers
from app.modules.auth.router import auth_router
from app.modules.users.router import users_router
from app.modules.products.router import product_router
from app.modules.clients.router import clients_router
from app.modules.sales.router import sales_router, admin_sales_router
from app.modules.cotizaciones.router import cotizaciones_router
from app.modules.settings.router import settings_router
from app.modules.punch.router import punch_router, admin_punch_router, admin_attendance_router
from app.modules.payroll.router import payroll_router
from app.modules.contabilidad.router import contabilidad_router
from app.modules.operations.router import operations_router
from app.modules.locations.router import locations_router, admin_locations_router
from app.modules.admin.router import admin_router

# Import models for table creation
import app.modules.auth.models
import app.modules.products.models
import app.modules.clients.models
import app.modules.sales.models
import app.modules.cotizaciones.models
import app.modules.settings.models
import app.modules.punch.models
import app.modules.payroll.models
import app.modules.contabilidad.models
import app.modules.operations.models
import app.modules.locations.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.is_production else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Negocio API",
    description="API interna: ventas, cotizaciones, ponches, nómina, operaciones y contabilidad",
    version="1.0.0",
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Archivos subidos (evidencias, fotos, facturas)
app.mount("/uploads", StaticFiles(directory=str(ensure_upload_dir())), name="uploads")

# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(users_router, prefix="/users", tags=["Users"])
app.include_router(product_router, prefix="/products", tags=["Products"])
app.include_router(clients_router, prefix="/clients", tags=["Clients"])
app.include_router(sales_router, prefix="/sales", tags=["Sales"])
app.include_router(admin_sales_router, prefix="/admin/sales", tags=["Sales"])
app.include_router(cotizaciones_router, prefix="/cotizaciones", tags=["Cotizaciones"])
app.include_router(settings_router, prefix="/settings", tags=["Settings"])
app.include_router(punch_router, prefix="/punch", tags=["Punch"])
app.include_router(admin_punch_router, prefix="/admin/punch", tags=["Punch"])
app.include_router(admin_attendance_router, prefix="/admin/attendance", tags=["Punch"])
app.include_router(payroll_router, prefix="/payroll", tags=["Payroll"])
app.include_router(contabilidad_router, prefix="/contabilidad", tags=["Contabilidad"])
app.include_router(operations_router, tags=["Operations"])
app.include_router(locations_router, prefix="/locations", tags=["Locations"])
app.include_router(admin_locations_router, prefix="/admin/locations", tags=["Locations"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)

@app.get("/")
async def read_root():
    return {"status": "ok"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}

@app.on_event("startup")
async def startup_event():
    logger.info("Negocio API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"CORS origins: {settings.cors_origins}")
    logger.info(f"Products source: {settings.products_source}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Negocio API shutting down...")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)

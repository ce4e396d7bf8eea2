"""
Seed script: usuarios base, productos y clientes de ejemplo.

What it creates:
- Administrador y dos vendedores (se actualizan si ya existen, y se desbloquean).
- Productos de ejemplo con precio y costo.
- Clientes de ejemplo del administrador.

También permite restablecer la contraseña de un usuario existente.

Run inside the API container to use 'postgres' host and project PYTHONPATH:
    docker compose exec api python scripts/seed_data.py seed --password "Cambiar!2025"
    docker compose exec api python scripts/seed_data.py reset-password \
        --email admin@negocio.local --password "Nueva!2025"

Las contraseñas también se pueden pasar por ADMIN_PASSWORD, SELLER_PASSWORD y
RESET_PASSWORD.
"""

# Add project root (/code) to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
import os
from decimal import Decimal

from app.database.database import SessionLocal
from app.modules.auth.models import User, Role
from app.modules.auth.utils import hash_password
from app.modules.clients.models import Client
from app.modules.products.models import Product

PRODUCTS = [
    ('Laptop Pro 14"', Decimal("1450"), Decimal("1100")),
    ('Monitor 27" 4K', Decimal("520"), Decimal("360")),
    ("Mouse Inalámbrico", Decimal("35"), Decimal("18")),
]

CLIENTS = [
    {
        "nombre": "Cliente Corporativo",
        "telefono": "8095550001",
        "email": "compras@corp.do",
        "direccion": "Av. Principal 123",
        "notas": "Prefiere facturas electrónicas",
    },
    {"nombre": "Juan Pérez", "telefono": "8095550002", "email": "juanperez@mail.com"},
]


def upsert_user(db, email: str, password: str, nombre_completo: str, telefono: str, role: Role, cedula: str):
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, cedula=cedula, edad=0)
        db.add(user)
    user.nombre_completo = nombre_completo
    user.telefono = telefono
    user.role = role
    user.password_hash = hash_password(password)
    user.blocked = False
    db.commit()
    db.refresh(user)
    return user


def ensure_product(db, nombre: str, precio: Decimal, costo: Decimal):
    product = db.query(Product).filter(Product.nombre == nombre).first()
    if product is None:
        product = Product(nombre=nombre)
        db.add(product)
    product.precio = precio
    product.costo = costo
    db.commit()
    return product


def ensure_client(db, owner_id, data: dict):
    client = db.query(Client).filter(Client.owner_id == owner_id, Client.nombre == data["nombre"]).first()
    if client is None:
        client = Client(owner_id=owner_id, nombre=data["nombre"], telefono=data["telefono"])
        db.add(client)
    for field, value in data.items():
        setattr(client, field, value)
    db.commit()
    return client


def seed(args):
    password = args.password or os.getenv("ADMIN_PASSWORD")
    if not password:
        raise SystemExit("ADMIN_PASSWORD (o --password) es requerido para el seed")
    seller_password = args.seller_password or os.getenv("SELLER_PASSWORD") or password

    db = SessionLocal()
    try:
        admin = upsert_user(db, args.email, password, "Administrador", "0000000000", Role.ADMIN, "000-0000000-0")
        sellers = [
            upsert_user(db, args.seller1_email, seller_password, "Vendedor Uno", "8090000001", Role.VENDEDOR, "000-0000000-1"),
            upsert_user(db, args.seller2_email, seller_password, "Vendedor Dos", "8090000002", Role.VENDEDOR, "000-0000000-2"),
        ]

        products = [ensure_product(db, *values) for values in PRODUCTS]
        clients = [ensure_client(db, admin.id, data) for data in CLIENTS]

        print("Seed completed.")
        print(f"  Admin:     {admin.email}")
        print(f"  Sellers:   {', '.join(s.email for s in sellers)}")
        print(f"  Products:  {', '.join(p.nombre for p in products)}")
        print(f"  Clients:   {', '.join(c.nombre for c in clients)}")
    finally:
        db.close()


def reset_password(args):
    password = args.password or os.getenv("RESET_PASSWORD") or os.getenv("ADMIN_PASSWORD")
    if not password:
        raise SystemExit("RESET_PASSWORD (o --password) es requerido")

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == args.email).first()
        if user is None:
            raise SystemExit(f"Usuario no encontrado: {args.email}")
        user.password_hash = hash_password(password)
        user.blocked = False
        db.commit()
        print(f"Password reset OK: {user.email}")
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Datos base de Negocio API")
    commands = parser.add_subparsers(dest="command", required=True)

    seed_parser = commands.add_parser("seed", help="Crear usuarios, productos y clientes de ejemplo")
    seed_parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@negocio.local"))
    seed_parser.add_argument("--password")
    seed_parser.add_argument("--seller-password")
    seed_parser.add_argument("--seller1-email", default=os.getenv("SELLER1_EMAIL", "vendedor1@negocio.local"))
    seed_parser.add_argument("--seller2-email", default=os.getenv("SELLER2_EMAIL", "vendedor2@negocio.local"))
    seed_parser.set_defaults(handler=seed)

    reset_parser = commands.add_parser("reset-password", help="Restablecer la contraseña de un usuario")
    reset_parser.add_argument("--email", default=os.getenv("RESET_EMAIL") or os.getenv("ADMIN_EMAIL", "admin@negocio.local"))
    reset_parser.add_argument("--password")
    reset_parser.set_defaults(handler=reset_password)

    args = parser.parse_args()
    args.handler(args)


if __name__ == "__main__":
    main()

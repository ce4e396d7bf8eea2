#!/usr/bin/env python3
"""
Migraciones de base de datos con Alembic.

Uso:
  python migrate.py create "mensaje"   # Autogenerar migración desde los modelos
  python migrate.py upgrade            # Aplicar migraciones pendientes
  python migrate.py downgrade          # Revertir la última migración
  python migrate.py stamp              # Marcar la BD actual como head
  python migrate.py history            # Ver historial
  python migrate.py current            # Ver revisión actual
"""
import logging
import sys
from pathlib import Path

root_dir = Path(__file__).parent
sys.path.insert(0, str(root_dir))

from alembic.config import Config
from alembic import command
from app.core.config import settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
logger = logging.getLogger("migrate")


def get_alembic_config() -> Config:
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    command.revision(get_alembic_config(), autogenerate=True, message=message)
    logger.info(f"Migración creada: {message}")


def run_migrations():
    command.upgrade(get_alembic_config(), "head")
    logger.info("Migraciones aplicadas")


def rollback_migration():
    command.downgrade(get_alembic_config(), "-1")
    logger.info("Última migración revertida")


def stamp_head():
    command.stamp(get_alembic_config(), "head")
    logger.info("Base de datos marcada en head")


ACTIONS = {
    "upgrade": run_migrations,
    "downgrade": rollback_migration,
    "stamp": stamp_head,
    "history": lambda: command.history(get_alembic_config()),
    "current": lambda: command.current(get_alembic_config()),
}


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    action = sys.argv[1]

    if action == "create":
        if len(sys.argv) < 3:
            logger.error("Se requiere un mensaje para la migración")
            sys.exit(1)
        create_migration(sys.argv[2])
    elif action in ACTIONS:
        ACTIONS[action]()
    else:
        logger.error(f"Acción desconocida: {action}")
        sys.exit(1)

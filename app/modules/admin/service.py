import json
import logging
from dataclasses import dataclass, asdict
from datetime import timedelta
from typing import List, Optional

import httpx
from sqlalchemy.orm import Session

from app.common.dates import utc_now, to_rd, rd_today, rd_day_start, rd_minutes_of_day
from app.core.config import settings
from app.modules.auth.models import User, Role
from app.modules.operations.models import FieldService, ServiceStatus
from app.modules.punch.models import Punch, PunchType
from app.modules.sales.models import Sale
from app.modules.settings.models import AppConfig, GLOBAL_CONFIG_ID

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7
MAX_DAYS = 30
ALERTS_PER_KIND = 12
NARRATIVE_ALERTS = 8
LATE_AFTER_MINUTES = 9 * 60 + 10

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_TIMEOUT_SECONDS = 30
SYSTEM_PROMPT = (
    "Eres un asistente de administración de empresa. Analiza métricas y alertas y responde "
    "en español con prioridades, riesgos y acciones concretas para hoy."
)

OPEN_OPERATION_STATUSES = (
    ServiceStatus.RESERVED, ServiceStatus.SURVEY, ServiceStatus.SCHEDULED,
    ServiceStatus.IN_PROGRESS, ServiceStatus.WARRANTY
)


@dataclass
class PanelAlert:
    code: str
    title: str
    detail: str
    severity: str


def parse_days(raw: Optional[str]) -> int:
    """Días de ventana, entre 1 y 30 (7 si no es un número)"""
    try:
        value = int((raw or "").strip())
    except ValueError:
        return DEFAULT_DAYS
    return max(1, min(MAX_DAYS, value))


def build_rule_narrative(metrics: dict, alerts: List[dict]) -> str:
    lines = [
        "Resumen automático de administración:",
        f"- Usuarios activos: {metrics.get('active_users', 0)}",
        f"- Sin ponchar hoy: {metrics.get('missing_punch_today', 0)}",
        f"- Sin ventas en ventana: {metrics.get('no_sales_in_window', 0)}",
        f"- Tardanzas hoy: {metrics.get('late_arrivals_today', 0)}",
    ]
    if not alerts:
        lines.append("No se detectaron novedades críticas en este momento.")
        return "\n".join(lines)

    lines.append("Novedades detectadas:")
    for alert in alerts[:NARRATIVE_ALERTS]:
        lines.append(f"- [{alert['severity'].upper()}] {alert['title']}: {alert['detail']}")
    return "\n".join(lines)


class AdminPanelService:
    """
    Panel del administrador: métricas del día y alertas de personal.

    "Hoy" y la hora de llegada se evalúan en hora de República Dominicana.
    """

    def __init__(self, db: Session):
        self.db = db

    def overview(self, days: int = DEFAULT_DAYS) -> dict:
        now = utc_now()
        today = rd_today()
        today_start = rd_day_start(today)
        window_start = rd_day_start(today - timedelta(days=days - 1))

        users = self.db.query(User).order_by(User.nombre_completo.asc()).all()
        active_users = [u for u in users if not u.blocked]

        punches_today = (
            self.db.query(Punch)
            .filter(Punch.timestamp >= today_start)
            .order_by(Punch.timestamp.asc())
            .all()
        )
        sales_window = (
            self.db.query(Sale.user_id)
            .filter(Sale.is_deleted.is_(False), Sale.sale_date >= window_start)
            .all()
        )
        open_operations = (
            self.db.query(FieldService)
            .filter(FieldService.is_deleted.is_(False), FieldService.status.in_(OPEN_OPERATION_STATUSES))
            .count()
        )

        punched_ids = set()
        first_entry = {}
        for punch in punches_today:
            punched_ids.add(punch.user_id)
            if punch.type == PunchType.ENTRADA_LABOR and punch.user_id not in first_entry:
                first_entry[punch.user_id] = punch.timestamp

        sellers_with_sales = {row.user_id for row in sales_window}

        no_punch = [u for u in active_users if u.role != Role.ADMIN and u.id not in punched_ids]
        no_sales = [
            u for u in active_users
            if u.role in (Role.VENDEDOR, Role.ASISTENTE) and u.id not in sellers_with_sales
        ]
        late = [
            u for u in active_users
            if u.id in first_entry and rd_minutes_of_day(first_entry[u.id]) > LATE_AFTER_MINUTES
        ]

        alerts: List[PanelAlert] = []
        for user in no_punch[:ALERTS_PER_KIND]:
            alerts.append(PanelAlert(
                code="MISSING_PUNCH",
                title="Empleado sin ponche hoy",
                detail=f"{user.nombre_completo} no tiene registros de ponche en {today.isoformat()}.",
                severity="high"
            ))
        for user in no_sales[:ALERTS_PER_KIND]:
            alerts.append(PanelAlert(
                code="NO_SALES_WINDOW",
                title="Empleado sin ventas en ventana",
                detail=f"{user.nombre_completo} no registra ventas en los últimos {days} días.",
                severity="medium"
            ))
        for user in late[:ALERTS_PER_KIND]:
            arrival = to_rd(first_entry[user.id]).strftime("%H:%M")
            alerts.append(PanelAlert(
                code="LATE_ARRIVAL",
                title="Llegada tardía detectada",
                detail=f"{user.nombre_completo} marcó entrada a las {arrival}.",
                severity="medium"
            ))

        return {
            "generated_at": now.isoformat(),
            "window_days": days,
            "metrics": {
                "total_users": len(users),
                "active_users": len(active_users),
                "blocked_users": len(users) - len(active_users),
                "punches_today": len(punches_today),
                "missing_punch_today": len(no_punch),
                "sales_in_window": len(sales_window),
                "no_sales_in_window": len(no_sales),
                "late_arrivals_today": len(late),
                "open_operations": open_operations,
            },
            "alerts": [asdict(a) for a in alerts],
        }

    def _ai_credentials(self, api_key: Optional[str], model: Optional[str]):
        config = self.db.query(AppConfig).filter(AppConfig.id == GLOBAL_CONFIG_ID).first()
        key = (api_key or settings.OPENAI_API_KEY or (config.openai_api_key if config else None) or "").strip()
        preferred = (model or settings.OPENAI_MODEL or (config.openai_model if config else None) or "").strip()

        candidates = []
        for candidate in [preferred] + settings.openai_model_candidates:
            if candidate and candidate not in candidates:
                candidates.append(candidate)
        return key, candidates

    def ai_insights(self, days: int = DEFAULT_DAYS, api_key: Optional[str] = None, model: Optional[str] = None) -> dict:
        """
        Narrativa del panel generada por OpenAI.

        Prueba los modelos candidatos en orden; si no hay API key o ninguno
        responde, devuelve la narrativa basada en reglas.
        """
        overview = self.overview(days)
        metrics = overview["metrics"]
        alerts = overview["alerts"]
        narrative = build_rule_narrative(metrics, alerts)

        key, candidates = self._ai_credentials(api_key, model)
        if not key:
            return {
                "source": "rules",
                "message": (
                    f"{narrative}\n\nConfigura la API key en Ajustes > Configuración de API "
                    "o define OPENAI_API_KEY en el backend para análisis IA avanzado."
                ),
                "metrics": metrics,
                "alerts": alerts,
            }

        content = json.dumps({
            "generated_at": overview["generated_at"],
            "window_days": overview["window_days"],
            "metrics": metrics,
            "alerts": alerts,
        }, ensure_ascii=False)
        headers = {"Authorization": f"Bearer {key}", "Content-Type": "application/json"}

        try:
            with httpx.Client(timeout=OPENAI_TIMEOUT_SECONDS) as client:
                for candidate in candidates:
                    response = client.post(OPENAI_URL, headers=headers, json={
                        "model": candidate,
                        "temperature": 0.2,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": content},
                        ],
                    })
                    if response.status_code >= 400:
                        logger.warning(f"OpenAI rechazó el modelo {candidate}: status={response.status_code}")
                        continue

                    payload = response.json() or {}
                    choices = payload.get("choices") or [{}]
                    message = ((choices[0].get("message") or {}).get("content") or "").strip()
                    return {
                        "source": "openai",
                        "selected_model": candidate,
                        "message": message or f"{narrative}\n\nNo se recibió contenido de OpenAI.",
                        "metrics": metrics,
                        "alerts": alerts,
                    }
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"OpenAI no disponible: {e}")

        return {
            "source": "rules",
            "message": (
                f"{narrative}\n\nFallo temporal de OpenAI o modelo no disponible, "
                "usando motor de reglas interno."
            ),
            "metrics": metrics,
            "alerts": alerts,
        }

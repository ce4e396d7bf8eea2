"""
Tests para ponches y cálculo de asistencia.

Las horas se expresan en UTC; República Dominicana es UTC-4 todo el año.
"""

from datetime import datetime, timezone
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.main import app
from app.modules.punch.models import Punch, PunchType
from app.modules.punch.attendance_calculator import (
    compute_day_metrics, compute_days, aggregate_days, is_weekend, diff_minutes
)


client = TestClient(app)


def punch(kind: PunchType, hour: int, minute: int = 0, day: int = 3):
    """Ponche del 2025-03-<day> a la hora UTC indicada"""
    return SimpleNamespace(type=kind, timestamp=datetime(2025, 3, day, hour, minute, tzinfo=timezone.utc))


class TestAttendanceCalculator:
    """Tests del cálculo diario de asistencia"""

    def test_full_day_with_tardiness_and_long_lunch(self):
        punches = [
            punch(PunchType.ENTRADA_LABOR, 13, 15),      # 09:15 RD
            punch(PunchType.SALIDA_ALMUERZO, 16, 0),     # 12:00 RD
            punch(PunchType.ENTRADA_ALMUERZO, 17, 10),   # 13:10 RD
            punch(PunchType.SALIDA_LABOR, 22, 0),        # 18:00 RD
        ]
        day = compute_day_metrics("2025-03-03", punches)

        assert day.tardiness_minutes == 15
        assert day.early_leave_minutes == 0
        assert day.lunch_minutes == 70
        assert day.lunch_complete is True
        assert day.worked_minutes_net == 455
        assert day.not_worked_minutes == 25
        assert day.incomplete is False
        assert [i.type for i in day.incidents] == ["TARDY"]

    def test_missing_exit_is_incomplete(self):
        day = compute_day_metrics("2025-03-03", [punch(PunchType.ENTRADA_LABOR, 13, 0)])

        assert day.incomplete is True
        assert day.worked_minutes_net is None
        assert day.not_worked_minutes == 480
        assert "INCOMPLETE" in [i.type for i in day.incidents]

    def test_lunch_without_return_uses_expected_minutes(self):
        punches = [
            punch(PunchType.ENTRADA_LABOR, 13, 0),
            punch(PunchType.SALIDA_ALMUERZO, 16, 0),
            punch(PunchType.SALIDA_LABOR, 22, 0),
        ]
        day = compute_day_metrics("2025-03-03", punches)

        assert day.lunch_minutes == 60
        assert day.lunch_complete is False
        assert day.worked_minutes_net == 480

    def test_sunday_has_no_incidents(self):
        punches = [
            punch(PunchType.ENTRADA_LABOR, 15, 0, day=2),
            punch(PunchType.SALIDA_LABOR, 18, 0, day=2),
        ]
        day = compute_day_metrics("2025-03-02", punches)

        assert is_weekend("2025-03-02") is True
        assert day.tardiness_minutes == 0
        assert day.early_leave_minutes == 0
        assert day.not_worked_minutes == 0
        assert day.incidents == []

    def test_days_grouped_by_local_date(self):
        # 02:00 UTC del día 4 sigue siendo el día 3 en RD
        punches = [
            punch(PunchType.ENTRADA_LABOR, 13, 0, day=3),
            punch(PunchType.SALIDA_LABOR, 2, 0, day=4),
        ]
        days = compute_days(punches)

        assert [d.date for d in days] == ["2025-03-03"]
        assert days[0].incomplete is False

    def test_aggregate_days(self):
        days = compute_days([
            punch(PunchType.ENTRADA_LABOR, 13, 30, day=3),
            punch(PunchType.SALIDA_LABOR, 22, 0, day=3),
            punch(PunchType.ENTRADA_LABOR, 13, 0, day=4),
        ])
        total = aggregate_days(days)

        assert total.tardiness_minutes == 30
        assert total.incomplete_days == 1
        assert total.incidents_count == 2

    def test_diff_minutes_rounds_half_up(self):
        start = datetime(2025, 3, 3, 13, 0, 0, tzinfo=timezone.utc)
        end = datetime(2025, 3, 3, 13, 10, 30, tzinfo=timezone.utc)
        assert diff_minutes(end, start) == 11


class TestPunchAPI:
    """Tests de los endpoints de ponche"""

    def test_create_and_list_my_punches(self, seller_headers):
        response = client.post("/punch", json={"type": "ENTRADA_LABOR"}, headers=seller_headers)
        assert response.status_code == 201
        assert response.json()["type"] == "ENTRADA_LABOR"

        response = client.get("/punch/me", headers=seller_headers)
        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_invalid_punch_type(self, seller_headers):
        response = client.post("/punch", json={"type": "CAFE"}, headers=seller_headers)
        assert response.status_code == 400

    def test_punch_requires_token(self):
        response = client.post("/punch", json={"type": "ENTRADA_LABOR"})
        assert response.status_code == 401

    def test_admin_routes_reject_sellers(self, seller_headers):
        assert client.get("/admin/punch", headers=seller_headers).status_code == 403
        assert client.get("/admin/attendance/summary", headers=seller_headers).status_code == 403

    def test_attendance_detail_for_user(self, db_session, admin_headers, seller_user):
        db_session.add_all([
            Punch(user_id=seller_user.id, type=PunchType.ENTRADA_LABOR,
                  timestamp=datetime(2025, 3, 3, 13, 20, tzinfo=timezone.utc)),
            Punch(user_id=seller_user.id, type=PunchType.SALIDA_LABOR,
                  timestamp=datetime(2025, 3, 3, 22, 0, tzinfo=timezone.utc)),
        ])
        db_session.commit()

        for path in (
            f"/admin/punch/attendance/user/{seller_user.id}",
            f"/admin/attendance/user/{seller_user.id}",
        ):
            response = client.get(path, params={"from": "2025-03-01", "to": "2025-03-05"}, headers=admin_headers)
            assert response.status_code == 200
            data = response.json()
            assert len(data["punches"]) == 2
            assert data["days"][0]["tardiness_minutes"] == 20

"""
Tests para nómina quincenal
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.main import app
from app.modules.payroll import periods
from app.modules.payroll.models import PayrollEntryType
from app.modules.payroll.service import sum_entries, goal_reached
from app.modules.sales.models import Sale


client = TestClient(app)


def entry(kind: PayrollEntryType, amount: str):
    return SimpleNamespace(type=kind, amount=Decimal(amount))


class TestPeriods:
    """Límites y títulos de quincena"""

    def test_first_half(self):
        assert periods.period_bounds_for(date(2025, 2, 10)) == (date(2025, 2, 1), date(2025, 2, 14))

    def test_second_half_ends_on_last_day(self):
        assert periods.period_bounds_for(date(2025, 2, 20)) == (date(2025, 2, 15), date(2025, 2, 28))
        assert periods.period_bounds_for(date(2024, 2, 15)) == (date(2024, 2, 15), date(2024, 2, 29))

    def test_next_period_crosses_month(self):
        base = periods.next_period_base(date(2025, 1, 31))
        assert periods.period_bounds_for(base) == (date(2025, 2, 1), date(2025, 2, 14))

    def test_title(self):
        assert periods.period_title(date(2025, 1, 15), date(2025, 1, 31)) == "Quincena 2 · 15-31/01/2025"
        assert periods.period_title_for(date(2025, 3, 2)) == "Quincena 1 · 01-14/03/2025"


class TestEntryTotals:
    """Agrupación de movimientos por tipo"""

    def test_negative_commissions_are_ignored(self):
        totals = sum_entries([
            entry(PayrollEntryType.COMISION_VENTAS, "-100"),
            entry(PayrollEntryType.COMISION_SERVICIO, "250"),
            entry(PayrollEntryType.BONIFICACION, "-50"),
        ])
        assert totals.sales_commissions == 0
        assert totals.service_commissions == Decimal("250")
        assert totals.bonuses == 0

    def test_deductions_count_as_absolute(self):
        totals = sum_entries([
            entry(PayrollEntryType.ADELANTO, "-1000"),
            entry(PayrollEntryType.TARDE, "200"),
            entry(PayrollEntryType.AUSENCIA, "-300"),
        ])
        assert totals.advances == Decimal("1000")
        assert totals.late == Decimal("200")
        assert totals.absences == Decimal("300")

    def test_other_uses_sign(self):
        totals = sum_entries([
            entry(PayrollEntryType.OTRO, "150"),
            entry(PayrollEntryType.OTRO, "-40"),
        ])
        assert totals.other_additions == Decimal("150")
        assert totals.other_deductions == Decimal("40")

    def test_goal_reached(self):
        assert goal_reached(Decimal("5000"), Decimal("5000")) is True
        assert goal_reached(Decimal("4999"), Decimal("5000")) is False
        assert goal_reached(Decimal("1"), Decimal("0")) is True
        assert goal_reached(Decimal("0"), Decimal("0")) is False


class TestPayrollAPI:
    """Endpoints de nómina"""

    def _period(self, headers, start="2025-03-01", end="2025-03-14"):
        response = client.post(
            "/payroll/periods",
            json={"start": start, "end": end, "title": "Quincena 1 · 01-14/03/2025"},
            headers=headers
        )
        assert response.status_code == 201
        return response.json()

    def test_periods_require_admin(self, seller_headers):
        assert client.get("/payroll/periods", headers=seller_headers).status_code == 403

    def test_overlapping_open_period_rejected(self, admin_headers):
        self._period(admin_headers)

        response = client.post(
            "/payroll/periods",
            json={"start": "2025-03-10", "end": "2025-03-20", "title": "Otra"},
            headers=admin_headers
        )
        assert response.status_code == 400

        overlap = client.get(
            "/payroll/periods/open-overlap",
            params={"start": "2025-03-05", "end": "2025-03-06"},
            headers=admin_headers
        )
        assert overlap.json() == {"overlaps": True}

    def test_end_before_start_rejected(self, admin_headers):
        response = client.post(
            "/payroll/periods",
            json={"start": "2025-03-14", "end": "2025-03-01", "title": "Mal"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_close_and_next_open(self, admin_headers):
        period = self._period(admin_headers)

        assert client.patch(f"/payroll/periods/{period['id']}/close", headers=admin_headers).json() == {"ok": True}

        response = client.post(f"/payroll/periods/{period['id']}/next-open", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["start_date"] == "2025-03-15"
        assert data["end_date"] == "2025-03-31"

    def test_manual_totals(self, admin_headers):
        period = self._period(admin_headers)
        employee = client.post(
            "/payroll/employees/upsert",
            json={"nombre": "Empleado Externo", "seguro_ley_monto": "300"},
            headers=admin_headers
        ).json()

        client.post("/payroll/config/upsert", json={
            "period_id": period["id"],
            "employee_id": employee["id"],
            "base_salary": "10000"
        }, headers=admin_headers)
        for kind, amount in (("BONIFICACION", "500"), ("ADELANTO", "-1000")):
            response = client.post("/payroll/entries", json={
                "period_id": period["id"],
                "employee_id": employee["id"],
                "date": "2025-03-05T12:00:00Z",
                "type": kind,
                "concept": kind.lower(),
                "amount": amount
            }, headers=admin_headers)
            assert response.status_code == 201

        response = client.get(
            "/payroll/totals",
            params={"period_id": period["id"], "employee_id": employee["id"]},
            headers=admin_headers
        )
        totals = response.json()
        assert totals["sales_commission_source"] == "manual"
        assert totals["bonuses"] == 500
        assert totals["advances"] == 1000
        assert totals["seguro_ley"] == 300
        assert totals["total"] == 9200

    def test_automatic_commission_requires_goal(self, db_session, admin_headers, seller_user):
        period = self._period(admin_headers)
        db_session.add(Sale(
            user_id=seller_user.id,
            sale_date=datetime(2025, 3, 5, 15, 0, tzinfo=timezone.utc),
            total_sold=Decimal("3000"),
            total_cost=Decimal("1000"),
            total_profit=Decimal("2000"),
            commission_amount=Decimal("200")
        ))
        db_session.commit()

        def totals_with_goal(goal: str):
            client.post("/payroll/employees/upsert", json={
                "id": str(seller_user.id),
                "nombre": seller_user.nombre_completo,
                "cuota_minima": goal
            }, headers=admin_headers)
            return client.get(
                "/payroll/totals",
                params={"period_id": period["id"], "employee_id": str(seller_user.id)},
                headers=admin_headers
            ).json()

        reached = totals_with_goal("1500")
        assert reached["sales_commission_source"] == "automatic"
        assert reached["sales_amount_this_period"] == 2000
        assert reached["commissions"] == 200

        missed = totals_with_goal("5000")
        assert missed["sales_goal_reached"] is False
        assert missed["commissions"] == 0

    def test_my_goal(self, db_session, admin_headers, seller_headers, seller_user):
        client.post("/payroll/employees/upsert", json={
            "id": str(seller_user.id),
            "nombre": seller_user.nombre_completo,
            "cuota_minima": "8000"
        }, headers=admin_headers)

        response = client.get("/payroll/my-goal", headers=seller_headers)
        assert response.status_code == 200
        assert response.json()["cuota_minima"] == 8000

    def test_my_goal_skips_inactive_linked_employee(self, admin_headers, seller_headers, seller_user):
        client.post("/payroll/employees/upsert", json={
            "id": str(seller_user.id),
            "nombre": seller_user.nombre_completo,
            "cuota_minima": "8000",
            "activo": False
        }, headers=admin_headers)
        client.post("/payroll/employees/upsert", json={
            "nombre": seller_user.nombre_completo,
            "telefono": seller_user.telefono,
            "cuota_minima": "5000"
        }, headers=admin_headers)

        response = client.get("/payroll/my-goal", headers=seller_headers)
        assert response.json()["cuota_minima"] == 5000

    def test_ensure_current_open_closes_stale_periods(self, admin_headers):
        stale = client.post(
            "/payroll/periods",
            json={"start": "2020-01-01", "end": "2020-01-14", "title": "Quincena 1 · 01-14/01/2020"},
            headers=admin_headers
        ).json()

        first = client.post("/payroll/periods/ensure-current-open", headers=admin_headers)
        assert first.status_code == 200
        current = first.json()
        assert current["status"] == "OPEN"
        assert current["id"] != stale["id"]
        assert current["title"].startswith("Quincena")

        again = client.post("/payroll/periods/ensure-current-open", headers=admin_headers).json()
        assert again["id"] == current["id"]

        old = client.get(f"/payroll/periods/{stale['id']}", headers=admin_headers).json()
        assert old["status"] == "CLOSED"

    def test_total_all_sums_active_employees(self, admin_headers):
        period = self._period(admin_headers)
        employees = [
            ({"nombre": "Empleada Caja", "seguro_ley_monto": "500"}, "10000"),
            ({"nombre": "Empleado Almacén"}, "5000"),
            ({"nombre": "Empleado Retirado", "activo": False}, "7000"),
        ]
        for data, base in employees:
            employee = client.post("/payroll/employees/upsert", json=data, headers=admin_headers).json()
            client.post("/payroll/config/upsert", json={
                "period_id": period["id"],
                "employee_id": employee["id"],
                "base_salary": base
            }, headers=admin_headers)

        response = client.get(f"/payroll/periods/{period['id']}/total-all", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"total": 14500}

    def test_my_history(self, admin_headers, seller_headers, seller_user):
        period = self._period(admin_headers)
        client.post("/payroll/employees/upsert", json={
            "id": str(seller_user.id),
            "nombre": seller_user.nombre_completo
        }, headers=admin_headers)
        client.post("/payroll/config/upsert", json={
            "period_id": period["id"],
            "employee_id": str(seller_user.id),
            "base_salary": "15000"
        }, headers=admin_headers)

        response = client.get("/payroll/my-history", headers=seller_headers)
        assert response.status_code == 200
        history = response.json()
        assert len(history) == 1
        assert history[0]["period_id"] == period["id"]
        assert history[0]["net_total"] == 15000

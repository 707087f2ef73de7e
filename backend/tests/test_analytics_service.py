"""
Tests for app/services/analytics_service.py and the analytics routes.
"""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio

from app.models.bonus import Bonus
from app.models.employee import Employee
from app.models.payment import PaymentRecord
from app.services.analytics_service import AnalyticsService, month_start, trend_windows
from conftest import EMPLOYEE_WALLET, OTHER_WALLET

NOW = datetime(2024, 6, 15, 12, 0)


@pytest_asyncio.fixture
async def payroll_data(db_session):
    alice = Employee(
        name="Alice", wallet_address=EMPLOYEE_WALLET, salary_amount="2",
        payment_frequency="MONTHLY", preferred_token="ETH", department="Engineering",
    )
    bob = Employee(
        name="Bob", wallet_address=OTHER_WALLET, salary_amount="1",
        payment_frequency="WEEKLY", preferred_token="USDC", department="Engineering",
        last_payment_at=NOW - timedelta(days=1),
    )
    carol = Employee(
        name="Carol", wallet_address="0x" + "44" * 20, salary_amount="3",
        payment_frequency="QUARTERLY", department="Sales", is_active=False,
    )
    db_session.add_all([alice, bob, carol])
    await db_session.flush()

    def payment(employee, amount, token, paid_at):
        return PaymentRecord(
            employee_id=employee.id, wallet_address=employee.wallet_address, amount=amount,
            token=token, transaction_hash="0x" + "ab" * 32, paid_at=paid_at,
        )

    def bonus(employee, amount, status, distributed_at=None):
        return Bonus(
            employee_id=employee.id, amount=amount, token_address="0x" + "00" * 20,
            token_symbol="ETH", reason="Bonus", status=status, distribution_date=distributed_at,
        )

    db_session.add_all([
        payment(alice, "2", "ETH", datetime(2024, 6, 10)),
        payment(bob, "1", "USDC", datetime(2024, 6, 14)),
        payment(alice, "2", "ETH", datetime(2024, 4, 5)),
        payment(alice, "2", "ETH", datetime(2023, 1, 1)),
        bonus(alice, "0.5", "distributed", datetime(2024, 6, 2)),
        bonus(bob, "0.25", "distributed", datetime(2024, 5, 20)),
        bonus(bob, "1", "pending"),
    ])
    await db_session.commit()
    return {"alice": alice, "bob": bob, "carol": carol}


class TestWindows:

    def test_month_start_crosses_year(self):
        assert month_start(datetime(2024, 2, 10), 3) == datetime(2023, 11, 1)

    def test_monthly_windows(self):
        windows = trend_windows("monthly", NOW)

        assert len(windows) == 12
        assert windows[0][0] == "Jul 2023"
        assert windows[-1] == ("Jun 2024", datetime(2024, 6, 1), datetime(2024, 7, 1))

    def test_monthly_windows_in_december(self):
        windows = trend_windows("monthly", datetime(2025, 12, 15))

        assert windows[0][0] == "Jan 2025"
        assert windows[-1] == ("Dec 2025", datetime(2025, 12, 1), datetime(2026, 1, 1))
        assert month_start(datetime(2025, 12, 15), -1) == datetime(2026, 1, 1)

    def test_weekly_windows_end_today(self):
        windows = trend_windows("weekly", NOW)

        assert len(windows) == 12
        assert windows[-1] == ("Week of Jun 09", datetime(2024, 6, 9), datetime(2024, 6, 16))

    def test_daily_windows(self):
        windows = trend_windows("daily", NOW)

        assert len(windows) == 30
        assert windows[-1][0] == "Jun 15"


class TestPayrollSummary:

    @pytest.mark.asyncio
    async def test_summary(self, db_session, payroll_data):
        summary = await AnalyticsService().payroll_summary(db_session, now=NOW)

        assert summary.total_employees == 3
        assert summary.active_employees == 2
        assert summary.total_payroll == "3.0000"
        assert summary.monthly_payroll == "6.3300"
        assert summary.pending_payments == 1
        assert summary.completed_payments == 4
        assert summary.total_bonuses_distributed == "0.7500"
        assert summary.bonuses_this_month == "0.5000"

    @pytest.mark.asyncio
    async def test_breakdowns(self, db_session, payroll_data):
        summary = await AnalyticsService().payroll_summary(db_session, now=NOW)

        assert [(d.department, d.count, d.total_salary) for d in summary.department_breakdown] == [
            ("Engineering", 2, "3.0000")
        ]
        assert {(t.token, t.percentage) for t in summary.token_usage} == {("ETH", 50.0), ("USDC", 50.0)}

    @pytest.mark.asyncio
    async def test_six_month_trend(self, db_session, payroll_data):
        summary = await AnalyticsService().payroll_summary(db_session, now=NOW)

        trend = {t.month: (t.amount, t.payments) for t in summary.payment_trends}
        assert list(trend) == ["Jan 2024", "Feb 2024", "Mar 2024", "Apr 2024", "May 2024", "Jun 2024"]
        assert trend["Apr 2024"] == ("2.0000", 1)
        assert trend["Jun 2024"] == ("3.0000", 2)

    @pytest.mark.asyncio
    async def test_empty(self, db_session):
        summary = await AnalyticsService().payroll_summary(db_session, now=NOW)

        assert summary.total_payroll == "0.0000"
        assert summary.token_usage == []
        assert len(summary.payment_trends) == 6

    @pytest.mark.asyncio
    async def test_trend_in_december(self, db_session):
        summary = await AnalyticsService().payroll_summary(db_session, now=datetime(2025, 12, 15))

        assert [t.month for t in summary.payment_trends][-2:] == ["Nov 2025", "Dec 2025"]


class TestEmployeeCosts:

    @pytest.mark.asyncio
    async def test_most_expensive_first(self, db_session, payroll_data):
        costs = await AnalyticsService().employee_costs(db_session)

        assert [(e.name, e.monthly_cost, e.annual_cost) for e in costs.employees] == [
            ("Bob", "4.3300", "52.0000"),
            ("Alice", "2.0000", "24.0000"),
        ]
        assert costs.total_monthly_cost == "6.3300"
        assert costs.total_annual_cost == "76.0000"
        assert costs.average_monthly_cost == "3.1650"
        assert costs.average_annual_cost == "38.0000"

    @pytest.mark.asyncio
    async def test_no_employees(self, db_session):
        costs = await AnalyticsService().employee_costs(db_session)

        assert costs.employees == []
        assert costs.average_annual_cost == "0.0000"


class TestPaymentTrends:

    @pytest.mark.asyncio
    async def test_weekly(self, db_session, payroll_data):
        trends = await AnalyticsService().payment_trends(db_session, "weekly", now=NOW)

        latest = trends.trends[-1]
        assert latest.period == "Week of Jun 09"
        assert latest.payment_count == 2
        assert latest.eth_amount == "2.0000"
        assert latest.token_amount == "1.0000"
        assert latest.average_amount == "1.5000"
        assert trends.summary.total_payments == 3
        assert trends.summary.total_amount == "5.0000"
        assert trends.summary.average_payment == "1.6667"

    @pytest.mark.asyncio
    async def test_daily(self, db_session, payroll_data):
        trends = await AnalyticsService().payment_trends(db_session, "daily", now=NOW)

        by_day = {t.period: t.payment_count for t in trends.trends}
        assert by_day["Jun 14"] == 1
        assert by_day["Jun 10"] == 1
        assert trends.summary.total_payments == 2


class TestDepartments:

    @pytest.mark.asyncio
    async def test_active_staff_only(self, db_session, payroll_data):
        result = await AnalyticsService().departments(db_session)

        assert result.total_employees == 2
        engineering = result.departments[0]
        assert engineering.department == "Engineering"
        assert engineering.total_salary == "3.0000"
        assert engineering.average_salary == "1.5000"
        assert engineering.percentage == 100.0
        assert {e.name for e in engineering.employees} == {"Alice", "Bob"}


class TestAnalyticsRoutes:

    @pytest.mark.asyncio
    async def test_routes_on_empty_database(self, client):
        for path in ("payroll-summary", "employee-costs", "payment-trends", "departments"):
            response = await client.get(f"/api/analytics/{path}")
            assert response.status_code == 200, path

    @pytest.mark.asyncio
    async def test_trend_period(self, client):
        weekly = await client.get("/api/analytics/payment-trends", params={"period": "weekly"})
        yearly = await client.get("/api/analytics/payment-trends", params={"period": "yearly"})

        assert len(weekly.json()["trends"]) == 12
        assert yearly.status_code == 400

"""
Analytics Service

Payroll analytics computed from stored employees, payments and bonuses:

- Payroll summary: headcount, payroll totals (raw and monthly
  equivalents), due/completed payments, distributed bonuses,
  department breakdown, six-month payment trend, preferred-token usage
- Employee costs: monthly and annual cost per active employee
- Payment trends: 30 daily, 12 weekly or 12 monthly buckets
- Departments: headcount and salary statistics per department

All amounts are Decimal internally and leave this module as
four-decimal strings.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bonus import Bonus
from app.models.employee import Employee
from app.models.payment import PaymentRecord
from app.schemas.analytics import (
    DepartmentAnalytics,
    DepartmentAnalyticsResponse,
    DepartmentBreakdown,
    DepartmentEmployee,
    EmployeeCost,
    EmployeeCostsResponse,
    MonthlyTrend,
    PaymentTrendsResponse,
    PayrollSummaryAnalytics,
    TokenUsage,
    TrendBucket,
    TrendSummary,
)
from app.services.payment_schedule import (
    annual_cost,
    format_amount,
    is_payment_due,
    monthly_equivalent,
    to_decimal,
)

ZERO = Decimal("0")
TREND_PERIODS = {"daily": 30, "weekly": 12, "monthly": 12}


def month_start(now: datetime, months_back: int = 0) -> datetime:
    """First instant of the calendar month ``months_back`` months before ``now``."""
    year, month = divmod(now.year * 12 + now.month - 1 - months_back, 12)
    return datetime(year, month + 1, 1)


def trend_windows(period: str, now: datetime) -> List[Tuple[str, datetime, datetime]]:
    """
    Oldest-first ``(label, start, end)`` windows for a trend period.

    Args:
        period: daily (30 days), weekly (12 weeks) or monthly (12 calendar months)
        now: Reference time

    Returns:
        Half-open windows [start, end); the newest one contains ``now``
    """
    count = TREND_PERIODS[period]
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    windows = []
    for i in range(count - 1, -1, -1):
        if period == "daily":
            start = today - timedelta(days=i)
            end = start + timedelta(days=1)
            label = start.strftime("%b %d")
        elif period == "weekly":
            end = today + timedelta(days=1) - timedelta(days=7 * i)
            start = end - timedelta(days=7)
            label = f"Week of {start.strftime('%b %d')}"
        else:
            start = month_start(now, i)
            end = month_start(now, i - 1)
            label = start.strftime("%b %Y")
        windows.append((label, start, end))
    return windows


def bucket_payments(
    records: Iterable[PaymentRecord],
    windows: Sequence[Tuple[str, datetime, datetime]],
) -> List[TrendBucket]:
    """Aggregate payment records into the given windows."""
    totals: Dict[str, Dict] = OrderedDict(
        (label, {"total": ZERO, "count": 0, "eth": ZERO, "token": ZERO})
        for label, _, _ in windows
    )
    for record in records:
        for label, start, end in windows:
            if start <= record.paid_at < end:
                amount = to_decimal(record.amount)
                bucket = totals[label]
                bucket["total"] += amount
                bucket["count"] += 1
                if (record.token or "ETH").upper() == "ETH":
                    bucket["eth"] += amount
                else:
                    bucket["token"] += amount
                break

    return [
        TrendBucket(
            period=label,
            total_amount=format_amount(data["total"]),
            payment_count=data["count"],
            average_amount=format_amount(data["total"] / data["count"] if data["count"] else ZERO),
            eth_amount=format_amount(data["eth"]),
            token_amount=format_amount(data["token"]),
        )
        for label, data in totals.items()
    ]


def _group_by_department(employees: Iterable[Employee]) -> Dict[Optional[str], List[Employee]]:
    groups: Dict[Optional[str], List[Employee]] = {}
    for employee in employees:
        groups.setdefault(employee.department, []).append(employee)
    return groups


class AnalyticsService:
    """Read-only aggregations over the payroll tables."""

    async def _active_employees(self, db: AsyncSession) -> List[Employee]:
        result = await db.execute(select(Employee).where(Employee.is_active.is_(True)))
        return list(result.scalars().all())

    async def _payments_since(self, db: AsyncSession, since: datetime) -> List[PaymentRecord]:
        result = await db.execute(select(PaymentRecord).where(PaymentRecord.paid_at >= since))
        return list(result.scalars().all())

    async def payroll_summary(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> PayrollSummaryAnalytics:
        now = now or datetime.utcnow()
        all_employees = (await db.execute(select(Employee))).scalars().all()
        active = [e for e in all_employees if e.is_active]

        total_payroll = sum((to_decimal(e.salary_amount) for e in active), ZERO)
        monthly_payroll = sum(
            (monthly_equivalent(e.salary_amount, e.payment_frequency) for e in active), ZERO
        )
        pending = sum(1 for e in active if is_payment_due(e.last_payment_at, e.payment_frequency, now))

        payments = (await db.execute(select(PaymentRecord))).scalars().all()

        distributed = (
            await db.execute(select(Bonus).where(Bonus.status == "distributed"))
        ).scalars().all()
        this_month = month_start(now)
        bonuses_total = sum((to_decimal(b.amount) for b in distributed), ZERO)
        bonuses_month = sum(
            (
                to_decimal(b.amount)
                for b in distributed
                if b.distribution_date and b.distribution_date >= this_month
            ),
            ZERO,
        )

        departments = sorted(
            _group_by_department(active).items(), key=lambda item: len(item[1]), reverse=True
        )
        department_breakdown = [
            DepartmentBreakdown(
                department=department,
                count=len(members),
                total_salary=format_amount(sum((to_decimal(m.salary_amount) for m in members), ZERO)),
            )
            for department, members in departments
        ]

        trend_source = [p for p in payments if p.paid_at >= month_start(now, 5)]
        payment_trends = [
            MonthlyTrend(month=bucket.period, amount=bucket.total_amount, payments=bucket.payment_count)
            for bucket in bucket_payments(trend_source, trend_windows("monthly", now)[-6:])
        ]

        token_counts: Dict[str, int] = {}
        for employee in active:
            token = (employee.preferred_token or "ETH").upper()
            token_counts[token] = token_counts.get(token, 0) + 1
        token_usage = [
            TokenUsage(token=token, count=count, percentage=round(count * 100 / len(active), 1))
            for token, count in sorted(token_counts.items(), key=lambda item: item[1], reverse=True)
        ]

        return PayrollSummaryAnalytics(
            total_employees=len(all_employees),
            active_employees=len(active),
            total_payroll=format_amount(total_payroll),
            monthly_payroll=format_amount(monthly_payroll),
            pending_payments=pending,
            completed_payments=len(payments),
            total_bonuses_distributed=format_amount(bonuses_total),
            bonuses_this_month=format_amount(bonuses_month),
            department_breakdown=department_breakdown,
            payment_trends=payment_trends,
            token_usage=token_usage,
        )

    async def employee_costs(self, db: AsyncSession) -> EmployeeCostsResponse:
        active = await self._active_employees(db)

        rows = []
        for e in active:
            monthly = monthly_equivalent(e.salary_amount, e.payment_frequency)
            annual = annual_cost(e.salary_amount, e.payment_frequency)
            rows.append((annual, monthly, e))
        rows.sort(key=lambda row: row[0], reverse=True)

        total_monthly = sum((monthly for _, monthly, _ in rows), ZERO)
        total_annual = sum((annual for annual, _, _ in rows), ZERO)
        count = len(rows)

        return EmployeeCostsResponse(
            employees=[
                EmployeeCost(
                    id=e.id,
                    name=e.name,
                    department=e.department,
                    salary_amount=e.salary_amount,
                    payment_frequency=e.payment_frequency,
                    monthly_cost=format_amount(monthly),
                    annual_cost=format_amount(annual),
                )
                for annual, monthly, e in rows
            ],
            total_monthly_cost=format_amount(total_monthly),
            total_annual_cost=format_amount(total_annual),
            average_monthly_cost=format_amount(total_monthly / count if count else ZERO),
            average_annual_cost=format_amount(total_annual / count if count else ZERO),
        )

    async def payment_trends(
        self, db: AsyncSession, period: str = "monthly", now: Optional[datetime] = None
    ) -> PaymentTrendsResponse:
        now = now or datetime.utcnow()
        windows = trend_windows(period, now)
        records = await self._payments_since(db, windows[0][1])
        buckets = bucket_payments(records, windows)

        total = sum((to_decimal(b.total_amount) for b in buckets), ZERO)
        payments = sum(b.payment_count for b in buckets)
        return PaymentTrendsResponse(
            period=period,
            trends=buckets,
            summary=TrendSummary(
                total_amount=format_amount(total),
                total_payments=payments,
                average_payment=format_amount(total / payments if payments else ZERO),
            ),
        )

    async def departments(self, db: AsyncSession) -> DepartmentAnalyticsResponse:
        active = await self._active_employees(db)
        groups = sorted(
            _group_by_department(active).items(), key=lambda item: len(item[1]), reverse=True
        )

        departments = []
        for department, members in groups:
            total_salary = sum((to_decimal(m.salary_amount) for m in members), ZERO)
            departments.append(DepartmentAnalytics(
                department=department,
                employee_count=len(members),
                total_salary=format_amount(total_salary),
                average_salary=format_amount(total_salary / len(members)),
                percentage=round(len(members) * 100 / len(active), 1),
                employees=[
                    DepartmentEmployee(id=m.id, name=m.name, salary_amount=m.salary_amount)
                    for m in members
                ],
            ))

        return DepartmentAnalyticsResponse(departments=departments, total_employees=len(active))


analytics_service = AnalyticsService()

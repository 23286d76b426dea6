"""Lender earnings roll-ups for the earnings dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from django.utils import timezone

from .refunds import to_date, to_decimal

STATUS_COMPLETED = "COMPLETED"
STATUS_DISPUTED = "DISPUTED"
EARNING_STATUSES = (STATUS_COMPLETED, STATUS_DISPUTED)
RECENT_WINDOW = timedelta(days=30)

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

_ZERO = Decimal("0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _aware(value: datetime) -> datetime:
    """Naive datetimes are read in the current time zone."""
    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


@dataclass(frozen=True)
class EarningsRecord:
    """A lender's booking as seen by earnings reporting."""

    rent_amount: Decimal
    platform_fee: Decimal
    status: str
    completed_at: datetime | None = None

    @property
    def net_earnings(self) -> Decimal:
        return to_decimal(self.rent_amount or _ZERO, "rent_amount") - to_decimal(
            self.platform_fee or _ZERO, "platform_fee"
        )


@dataclass(frozen=True)
class EarningsSummary:
    total_earnings: Decimal
    pending_earnings: Decimal
    earnings_30_days: Decimal
    total_transactions: int


@dataclass(frozen=True)
class MonthlyEarnings:
    month: str
    earnings: Decimal


def summarize_earnings(
    records: Iterable[EarningsRecord],
    *,
    now: datetime | None = None,
) -> EarningsSummary:
    """
    Aggregate lender earnings.

    Completed bookings count as earned, disputed ones as pending. Other
    statuses are ignored.
    """
    if now is None:
        now = timezone.now()
    cutoff = _aware(now) - RECENT_WINDOW

    total = _ZERO
    pending = _ZERO
    recent = _ZERO
    transactions = 0

    for record in records:
        if record.status not in EARNING_STATUSES:
            continue
        earnings = record.net_earnings
        if record.status == STATUS_COMPLETED:
            total += earnings
        else:
            pending += earnings
        transactions += 1
        if record.completed_at is not None and _aware(record.completed_at) > cutoff:
            recent += earnings

    return EarningsSummary(
        total_earnings=_money(total),
        pending_earnings=_money(pending),
        earnings_30_days=_money(recent),
        total_transactions=transactions,
    )


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _month_label(year: int, month: int) -> str:
    return f"{MONTH_LABELS[month - 1]} {year}"


def monthly_earnings(
    records: Iterable[EarningsRecord],
    *,
    today: date | None = None,
    months: int = 12,
) -> list[MonthlyEarnings]:
    """Return completed earnings bucketed per month, oldest month first, zero-filled."""
    if today is None:
        today = timezone.localdate()
    if months <= 0:
        return []

    buckets: dict[str, Decimal] = {}
    for offset in range(-(months - 1), 1):
        year, month = _shift_month(today.year, today.month, offset)
        buckets[_month_label(year, month)] = _ZERO

    for record in records:
        if record.status != STATUS_COMPLETED or record.completed_at is None:
            continue
        completed_on = to_date(record.completed_at)
        label = _month_label(completed_on.year, completed_on.month)
        if label in buckets:
            buckets[label] += record.net_earnings

    return [MonthlyEarnings(month=label, earnings=_money(value)) for label, value in buckets.items()]

"""Refund and settlement breakdowns for returned rentals.

Rental payment structure:
- Full daily rate for every day actually used (start and end inclusive).
- Unused days on an early return refund a share of the daily rate (50%).
- The security deposit is always returned in full.
- Late returns accrue a penalty (2x the daily rate) for every day past the
  one-day grace window after the end date.

Breakdowns are recomputed on demand and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from django.conf import settings
from django.utils import timezone

_ZERO = Decimal("0")
_CENT = Decimal("0.01")


class RefundCalculationError(ValueError):
    """Base class for rejected refund calculation inputs."""


class InvalidRange(RefundCalculationError):
    """The rental dates do not form a valid range."""


class InvalidAmount(RefundCalculationError):
    """A monetary input is negative or not a number."""


@dataclass(frozen=True)
class RefundPolicy:
    """Tunable constants applied when settling a return."""

    early_return_refund_rate: Decimal = Decimal("0.5")
    late_penalty_multiplier: Decimal = Decimal("2")
    late_grace_days: int = 1


DEFAULT_REFUND_POLICY = RefundPolicy()


def refund_policy_from_settings() -> RefundPolicy:
    """Build the policy from Django settings, defaulting to the stock policy."""
    return RefundPolicy(
        early_return_refund_rate=to_decimal(
            getattr(
                settings,
                "RENTAL_EARLY_RETURN_REFUND_RATE",
                DEFAULT_REFUND_POLICY.early_return_refund_rate,
            ),
            "RENTAL_EARLY_RETURN_REFUND_RATE",
        ),
        late_penalty_multiplier=to_decimal(
            getattr(
                settings,
                "RENTAL_LATE_PENALTY_MULTIPLIER",
                DEFAULT_REFUND_POLICY.late_penalty_multiplier,
            ),
            "RENTAL_LATE_PENALTY_MULTIPLIER",
        ),
        late_grace_days=max(
            int(getattr(settings, "RENTAL_LATE_GRACE_DAYS", DEFAULT_REFUND_POLICY.late_grace_days)),
            0,
        ),
    )


@dataclass(frozen=True)
class RefundBreakdown:
    """How a rental settles between renter and lender."""

    total_rental_days: int
    days_used: int
    days_remaining: int

    daily_rate: Decimal
    charge_for_days_used: Decimal
    refund_for_unused_days: Decimal

    security_deposit: Decimal
    deposit_to_be_returned: Decimal

    total_earnings: Decimal  # lender receives
    total_refund: Decimal  # renter receives

    penalty_days: int | None = None
    penalty_amount: Decimal | None = None

    def as_dict(self) -> dict[str, Any]:
        """
        Serialize for JSON responses.

        Money is rounded to cents for display only (``"600.00"``); penalty
        keys are left out entirely when no penalty applies.
        """
        payload: dict[str, Any] = {
            "total_rental_days": self.total_rental_days,
            "days_used": self.days_used,
            "days_remaining": self.days_remaining,
            "daily_rate": _cents_str(self.daily_rate),
            "charge_for_days_used": _cents_str(self.charge_for_days_used),
            "refund_for_unused_days": _cents_str(self.refund_for_unused_days),
            "security_deposit": _cents_str(self.security_deposit),
            "deposit_to_be_returned": _cents_str(self.deposit_to_be_returned),
            "total_earnings": _cents_str(self.total_earnings),
            "total_refund": _cents_str(self.total_refund),
        }
        if self.penalty_days is not None:
            payload["penalty_days"] = self.penalty_days
        if self.penalty_amount is not None:
            payload["penalty_amount"] = _cents_str(self.penalty_amount)
        return payload


def _cents_str(amount: Decimal) -> str:
    return str(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def to_decimal(value: object, field_name: str) -> Decimal:
    """Convert a monetary input to Decimal, rejecting negatives and garbage."""
    if isinstance(value, bool):
        raise InvalidAmount(f"{field_name} must be a number.")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise InvalidAmount(f"{field_name} must be a number.") from exc
    if not amount.is_finite():
        raise InvalidAmount(f"{field_name} must be a finite number.")
    if amount < _ZERO:
        raise InvalidAmount(f"{field_name} cannot be negative.")
    return amount


def to_date(value: date | datetime) -> date:
    """Reduce a date or datetime to a calendar date (local time for aware values)."""
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


def calculate_refund(
    price_per_day: Decimal | int | str,
    deposit: Decimal | int | str,
    start_date: date | datetime,
    end_date: date | datetime,
    return_date: date | datetime | None = None,
    *,
    policy: RefundPolicy = DEFAULT_REFUND_POLICY,
) -> RefundBreakdown:
    """
    Compute the renter refund and lender earnings for a rental.

    Leave ``return_date`` empty for active bookings: the rental is then
    settled as if returned on time, with no refund and no penalty.
    """
    rate = to_decimal(price_per_day, "price_per_day")
    deposit_amount = to_decimal(deposit, "deposit")
    start = to_date(start_date)
    end = to_date(end_date)
    if end < start:
        raise InvalidRange("end_date cannot be before start_date.")

    total_days = (end - start).days + 1

    days_used = total_days
    days_remaining = 0
    refund_for_unused = _ZERO
    penalty = _ZERO
    penalty_days = 0

    if return_date is not None:
        returned = to_date(return_date)
        if returned < end:
            # A return logged before the start date counts as no days used.
            days_used = max((returned - start).days + 1, 0)
            days_remaining = total_days - days_used
            refund_for_unused = days_remaining * rate * policy.early_return_refund_rate
        elif returned > end:
            days_past_due = (returned - end).days
            if days_past_due > policy.late_grace_days:
                penalty_days = days_past_due - policy.late_grace_days
                penalty = penalty_days * rate * policy.late_penalty_multiplier

    charge_for_used = days_used * rate

    return RefundBreakdown(
        total_rental_days=total_days,
        days_used=days_used,
        days_remaining=days_remaining,
        daily_rate=rate,
        charge_for_days_used=charge_for_used,
        refund_for_unused_days=refund_for_unused,
        security_deposit=deposit_amount,
        deposit_to_be_returned=deposit_amount,
        total_earnings=charge_for_used + penalty,
        total_refund=refund_for_unused + deposit_amount,
        penalty_days=penalty_days if penalty_days > 0 else None,
        penalty_amount=penalty if penalty > _ZERO else None,
    )


def format_money(amount: Decimal) -> str:
    """Round to cents and drop trailing zeros: 500, 50.5, 33.33."""
    quantized = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    if quantized == quantized.to_integral_value():
        return f"{quantized:.0f}"
    return f"{quantized.normalize():f}"


def _format_rate(value: Decimal) -> str:
    return f"{value.normalize():f}"


def format_refund_breakdown(
    breakdown: RefundBreakdown,
    *,
    policy: RefundPolicy = DEFAULT_REFUND_POLICY,
    currency_symbol: str | None = None,
) -> str:
    """Render a breakdown as the multi-line summary shown to renters and lenders."""
    symbol = currency_symbol
    if symbol is None:
        symbol = getattr(settings, "RENTAL_CURRENCY_SYMBOL", "₹")

    def money(value: Decimal) -> str:
        return f"{symbol}{format_money(value)}"

    summary = f"Total Rental Days: {breakdown.total_rental_days}\n"
    summary += f"Days Used: {breakdown.days_used}\n"
    summary += f"Days Remaining: {breakdown.days_remaining}\n\n"

    summary += f"Daily Rate: {money(breakdown.daily_rate)}\n"
    summary += f"Charge for {breakdown.days_used} day(s): {money(breakdown.charge_for_days_used)}\n"

    if breakdown.days_remaining > 0:
        percent = _format_rate(policy.early_return_refund_rate * 100)
        summary += (
            f"Refund for {breakdown.days_remaining} unused day(s) ({percent}%): "
            f"{money(breakdown.refund_for_unused_days)}\n"
        )

    summary += f"Security Deposit (returned): {money(breakdown.deposit_to_be_returned)}\n\n"

    if breakdown.penalty_amount and breakdown.penalty_amount > _ZERO:
        multiplier = _format_rate(policy.late_penalty_multiplier)
        summary += (
            f"⚠️ Late Pickup Penalty ({breakdown.penalty_days} day(s) × {multiplier}x rate): "
            f"{money(breakdown.penalty_amount)}\n\n"
        )

    summary += f"Renter Receives: {money(breakdown.total_refund)}\n"
    summary += f"Lender Receives: {money(breakdown.total_earnings)}"

    return summary

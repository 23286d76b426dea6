"""Celery tasks for settling returned bookings."""

from __future__ import annotations

import logging
from datetime import date

from celery import shared_task

from .refunds import calculate_refund, refund_policy_from_settings
from .stripe_settlement import StripeTransientError, apply_refund_breakdown

logger = logging.getLogger(__name__)


def _parse_date(value: str | date | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


@shared_task(
    bind=True,
    autoretry_for=(StripeTransientError,),
    retry_backoff=True,
    max_retries=5,
    name="settlements.settle_booking_return",
)
def settle_booking_return(
    self,
    booking_ref: str,
    price_per_day: str,
    deposit: str,
    start_date: str,
    end_date: str,
    return_date: str | None,
    charge_intent_id: str,
    deposit_hold_id: str | None = None,
    customer_id: str | None = None,
) -> dict:
    """
    Recompute the return breakdown for a booking and push it to Stripe.

    Arguments are primitives so the task can be queued from booking handlers.
    """
    breakdown = calculate_refund(
        price_per_day,
        deposit,
        _parse_date(start_date),
        _parse_date(end_date),
        _parse_date(return_date),
        policy=refund_policy_from_settings(),
    )
    logger.info(
        "settlements: settling booking %s",
        booking_ref,
        extra={
            "booking_ref": booking_ref,
            "total_earnings": str(breakdown.total_earnings),
            "total_refund": str(breakdown.total_refund),
            "attempt": self.request.retries,
        },
    )
    result = apply_refund_breakdown(
        breakdown,
        charge_intent_id=charge_intent_id,
        booking_ref=booking_ref,
        deposit_hold_id=deposit_hold_id,
        customer_id=customer_id,
    )
    return {"breakdown": breakdown.as_dict(), "settlement": result.as_dict()}


__all__ = ["settle_booking_return"]

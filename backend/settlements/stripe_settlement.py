"""Forward return settlements to Stripe: refund the renter, release the deposit, charge late fees."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

import stripe
from django.conf import settings

from .refunds import RefundBreakdown

logger = logging.getLogger(__name__)
IDEMPOTENCY_VERSION = "v1"
AUTOMATIC_PAYMENT_METHODS_CONFIG = {"enabled": True, "allow_redirects": "never"}


class StripeConfigurationError(Exception):
    """Stripe is not configured correctly in the environment."""


class StripeTransientError(Exception):
    """Temporary Stripe/API issue that should be retried."""


class StripePaymentError(Exception):
    """Permanent payment failure while settling a booking."""


@dataclass(frozen=True)
class SettlementResult:
    refund_id: str | None
    refunded_cents: int
    deposit_release_id: str | None
    released_cents: int
    late_fee_intent_id: str | None
    late_fee_cents: int

    def as_dict(self) -> dict[str, object]:
        return {
            "refund_id": self.refund_id,
            "refunded_cents": self.refunded_cents,
            "deposit_release_id": self.deposit_release_id,
            "released_cents": self.released_cents,
            "late_fee_intent_id": self.late_fee_intent_id,
            "late_fee_cents": self.late_fee_cents,
        }


def _get_stripe_api_key() -> str:
    """Return the configured Stripe API key or raise if missing."""
    api_key = getattr(settings, "STRIPE_SECRET_KEY", "")
    if not api_key:
        raise StripeConfigurationError("Stripe secret key not configured.")
    return api_key


def _to_cents(amount: Decimal) -> int:
    """Convert Decimal amounts to integer minor units, rounding to the nearest cent."""
    cents = (amount * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


def _handle_stripe_error(exc: stripe.error.StripeError) -> None:
    """Map Stripe SDK errors onto internal exception types."""
    if isinstance(exc, stripe.error.CardError):
        message = exc.user_message or "Your card was declined."
        raise StripePaymentError(message) from exc
    if isinstance(
        exc,
        (
            stripe.error.RateLimitError,
            stripe.error.APIConnectionError,
            stripe.error.APIError,
        ),
    ):
        raise StripeTransientError("Temporary Stripe error, please retry.") from exc
    if isinstance(exc, (stripe.error.AuthenticationError, stripe.error.PermissionError)):
        raise StripeConfigurationError("Stripe credentials are invalid or unauthorized.") from exc
    if isinstance(exc, stripe.error.InvalidRequestError):
        raise StripePaymentError(exc.user_message or "Invalid payment request.") from exc
    raise StripePaymentError(exc.user_message or "Stripe payment failure.") from exc


def _is_missing_resource(exc: stripe.error.StripeError) -> bool:
    return isinstance(exc, stripe.error.InvalidRequestError) and (
        getattr(exc, "code", "") == "resource_missing"
    )


def _refund_charge(intent_id: str, cents: int, booking_ref: str | int) -> str | None:
    try:
        refund = stripe.Refund.create(
            payment_intent=intent_id,
            amount=cents,
            idempotency_key=f"booking:{booking_ref}:{IDEMPOTENCY_VERSION}:refund:{cents}",
            metadata={
                "booking_ref": str(booking_ref),
                "env": getattr(settings, "STRIPE_ENV", "dev") or "dev",
                "kind": "booking_return_refund",
            },
        )
    except stripe.error.StripeError as exc:
        if _is_missing_resource(exc):
            # Treat missing intents as already refunded (idempotent behavior).
            logger.info(
                "Stripe charge PaymentIntent %s missing for booking %s; assuming refunded.",
                intent_id,
                booking_ref,
            )
            return None
        _handle_stripe_error(exc)
    return refund.id


def _release_deposit_hold(hold_id: str, booking_ref: str | int) -> str | None:
    try:
        # Release holds by canceling the PaymentIntent; nothing is captured from it.
        release_intent = stripe.PaymentIntent.cancel(hold_id)
    except stripe.error.StripeError as exc:
        if _is_missing_resource(exc):
            logger.info(
                "Stripe deposit PaymentIntent %s already released for booking %s.",
                hold_id,
                booking_ref,
            )
            return None
        _handle_stripe_error(exc)
    return release_intent.id


def _charge_late_fee(customer_id: str, cents: int, booking_ref: str | int) -> str:
    try:
        intent = stripe.PaymentIntent.create(
            amount=cents,
            currency=getattr(settings, "STRIPE_CURRENCY", "inr") or "inr",
            customer=customer_id,
            description="Late return fee",
            automatic_payment_methods={**AUTOMATIC_PAYMENT_METHODS_CONFIG},
            capture_method="automatic",
            confirm=True,
            off_session=True,
            metadata={
                "booking_ref": str(booking_ref),
                "env": getattr(settings, "STRIPE_ENV", "dev") or "dev",
                "kind": "booking_late_fee",
            },
            idempotency_key=f"booking:{booking_ref}:{IDEMPOTENCY_VERSION}:late:{cents}",
        )
    except stripe.error.StripeError as exc:
        _handle_stripe_error(exc)
    return intent.id


def apply_refund_breakdown(
    breakdown: RefundBreakdown,
    *,
    charge_intent_id: str,
    booking_ref: str | int,
    deposit_hold_id: str | None = None,
    customer_id: str | None = None,
) -> SettlementResult:
    """
    Settle a returned booking against the payments taken when it was booked.

    ``charge_intent_id`` is the captured booking charge. It already pays the
    lender for the days used, so the unused-day refund is refunded out of it.
    When the deposit sits on a separate manual-capture ``deposit_hold_id`` the
    hold is released by canceling it; otherwise the deposit was part of the
    booking charge and is refunded together with the unused days. A late
    penalty is charged to the renter's saved ``customer_id`` as a new
    off-session PaymentIntent. Zero amounts skip the Stripe call.
    """
    charge_id = (charge_intent_id or "").strip()
    hold_id = (deposit_hold_id or "").strip()
    customer = (customer_id or "").strip()

    refund_amount = breakdown.refund_for_unused_days
    release_cents = 0
    if hold_id:
        release_cents = _to_cents(breakdown.deposit_to_be_returned)
    else:
        refund_amount += breakdown.deposit_to_be_returned
    refund_cents = _to_cents(refund_amount)
    late_fee_cents = _to_cents(breakdown.penalty_amount or Decimal("0"))

    if refund_cents > 0 and not charge_id:
        raise StripePaymentError(f"Booking {booking_ref} has no PaymentIntent to refund against.")
    if late_fee_cents > 0 and not customer:
        raise StripeConfigurationError("Renter is missing a Stripe customer id.")

    if refund_cents <= 0 and release_cents <= 0 and late_fee_cents <= 0:
        return SettlementResult(None, 0, None, 0, None, 0)

    stripe.api_key = _get_stripe_api_key()

    refund_id = _refund_charge(charge_id, refund_cents, booking_ref) if refund_cents > 0 else None
    release_id = _release_deposit_hold(hold_id, booking_ref) if release_cents > 0 else None
    late_fee_id = (
        _charge_late_fee(customer, late_fee_cents, booking_ref) if late_fee_cents > 0 else None
    )

    logger.info(
        "settlements: booking %s settled",
        booking_ref,
        extra={
            "booking_ref": str(booking_ref),
            "refunded_cents": refund_cents,
            "released_cents": release_cents,
            "late_fee_cents": late_fee_cents,
        },
    )
    return SettlementResult(
        refund_id=refund_id,
        refunded_cents=refund_cents if refund_id else 0,
        deposit_release_id=release_id,
        released_cents=release_cents if release_id else 0,
        late_fee_intent_id=late_fee_id,
        late_fee_cents=late_fee_cents if late_fee_id else 0,
    )

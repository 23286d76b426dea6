from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings

from .refunds import to_date, to_decimal


def q2(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class RentalQuote:
    """Amounts a renter authorizes when booking a listing."""

    days: int
    daily_rate: Decimal
    rent_amount: Decimal
    delivery_fee: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    deposit: Decimal
    total_charge: Decimal

    def as_dict(self) -> dict[str, str]:
        """Money quantized to 2 decimals and rendered as strings for JSON stability."""
        return {
            "days": str(self.days),
            "daily_rate": str(q2(self.daily_rate)),
            "rent_amount": str(q2(self.rent_amount)),
            "delivery_fee": str(q2(self.delivery_fee)),
            "platform_fee": str(q2(self.platform_fee)),
            "total_amount": str(q2(self.total_amount)),
            "deposit": str(q2(self.deposit)),
            "total_charge": str(q2(self.total_charge)),
        }


def calculate_rental_cost(
    price_per_day: Decimal | int | str,
    start_date: date | datetime,
    end_date: date | datetime,
    *,
    deposit: Decimal | int | str = Decimal("0"),
    delivery_fee: Decimal | int | str | None = None,
    platform_fee_rate: Decimal | str | None = None,
) -> RentalQuote:
    """
    Compute booking-time pricing for a listing:
    - Days: whole days between start and end (end-exclusive)
    - Rent: days * price_per_day
    - Platform fee: settings.BOOKING_RENTER_FEE_RATE * rent
    - Total amount: rent + delivery fee + platform fee
    - Total charge: total amount + security deposit

    Unlike the refund breakdown, the day count here does not include the end date.
    """
    rate = to_decimal(price_per_day, "price_per_day")
    deposit_amount = to_decimal(deposit, "deposit")
    if delivery_fee is None:
        delivery_fee = getattr(settings, "BOOKING_DELIVERY_FEE", Decimal("10"))
    delivery = to_decimal(delivery_fee, "delivery_fee")
    if platform_fee_rate is None:
        platform_fee_rate = getattr(settings, "BOOKING_RENTER_FEE_RATE", Decimal("0.10"))
    fee_rate = to_decimal(platform_fee_rate, "platform_fee_rate")

    days = abs((to_date(end_date) - to_date(start_date)).days)
    rent_amount = rate * days
    platform_fee = rent_amount * fee_rate
    total_amount = rent_amount + delivery + platform_fee

    return RentalQuote(
        days=days,
        daily_rate=rate,
        rent_amount=rent_amount,
        delivery_fee=delivery,
        platform_fee=platform_fee,
        total_amount=total_amount,
        deposit=deposit_amount,
        total_charge=total_amount + deposit_amount,
    )

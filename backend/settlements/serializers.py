"""Serializers for the settlement quote endpoints."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .pricing import calculate_rental_cost
from .refunds import (
    RefundCalculationError,
    calculate_refund,
    refund_policy_from_settings,
)

MONEY_FIELD_KWARGS = {"max_digits": 12, "decimal_places": 2, "min_value": Decimal("0")}


def _as_validation_error(exc: RefundCalculationError) -> serializers.ValidationError:
    return serializers.ValidationError({"non_field_errors": [str(exc)]})


class RefundQuoteSerializer(serializers.Serializer):
    """Validate a refund preview request and attach the computed breakdown."""

    price_per_day = serializers.DecimalField(**MONEY_FIELD_KWARGS)
    deposit = serializers.DecimalField(**MONEY_FIELD_KWARGS)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    return_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs: dict) -> dict:
        policy = refund_policy_from_settings()
        try:
            attrs["breakdown"] = calculate_refund(
                attrs["price_per_day"],
                attrs["deposit"],
                attrs["start_date"],
                attrs["end_date"],
                attrs.get("return_date"),
                policy=policy,
            )
        except RefundCalculationError as exc:
            raise _as_validation_error(exc) from exc
        attrs["policy"] = policy
        return attrs


class RentalQuoteSerializer(serializers.Serializer):
    """Validate a booking price preview request."""

    price_per_day = serializers.DecimalField(**MONEY_FIELD_KWARGS)
    deposit = serializers.DecimalField(required=False, default=Decimal("0"), **MONEY_FIELD_KWARGS)
    start_date = serializers.DateField()
    end_date = serializers.DateField()

    def validate(self, attrs: dict) -> dict:
        if attrs["end_date"] < attrs["start_date"]:
            raise serializers.ValidationError({"end_date": ["End date cannot be before start date."]})
        try:
            attrs["quote"] = calculate_rental_cost(
                attrs["price_per_day"],
                attrs["start_date"],
                attrs["end_date"],
                deposit=attrs["deposit"],
            )
        except RefundCalculationError as exc:
            raise _as_validation_error(exc) from exc
        return attrs

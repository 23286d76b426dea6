"""Settlement preview endpoints used by booking and earnings pages."""

from __future__ import annotations

import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .refunds import format_refund_breakdown, refund_policy_from_settings
from .serializers import RefundQuoteSerializer, RentalQuoteSerializer

logger = logging.getLogger(__name__)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def refund_quote(request):
    """Return the refund/earnings breakdown for a (possibly hypothetical) return."""
    serializer = RefundQuoteSerializer(data=request.data)
    if not serializer.is_valid():
        logger.info(
            "settlements: rejected refund quote for user %s",
            request.user.id,
            extra={"errors": serializer.errors},
        )
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    breakdown = serializer.validated_data["breakdown"]
    payload = breakdown.as_dict()
    payload["summary"] = format_refund_breakdown(
        breakdown,
        policy=serializer.validated_data["policy"],
    )
    return Response(payload)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def rental_quote(request):
    """Return booking-time pricing for a listing and date range."""
    serializer = RentalQuoteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(serializer.validated_data["quote"].as_dict())


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def settlement_policy(_request):
    """Surface the refund policy and booking fee configuration currently in effect."""
    policy = refund_policy_from_settings()
    return Response(
        {
            "early_return_refund_rate": str(policy.early_return_refund_rate),
            "late_penalty_multiplier": str(policy.late_penalty_multiplier),
            "late_grace_days": policy.late_grace_days,
            "platform_fee_rate": str(settings.BOOKING_RENTER_FEE_RATE),
            "delivery_fee": str(settings.BOOKING_DELIVERY_FEE),
            "currency_symbol": settings.RENTAL_CURRENCY_SYMBOL,
        }
    )

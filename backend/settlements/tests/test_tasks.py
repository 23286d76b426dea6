"""Tests for the background return settlement task."""

from __future__ import annotations

from decimal import Decimal

import pytest

from settlements import tasks
from settlements.refunds import InvalidRange
from settlements.stripe_settlement import SettlementResult, StripeTransientError


@pytest.fixture
def captured_breakdowns(monkeypatch):
    seen: list = []

    def fake_apply(
        breakdown, *, charge_intent_id, booking_ref, deposit_hold_id=None, customer_id=None
    ):
        seen.append((breakdown, charge_intent_id, booking_ref, deposit_hold_id, customer_id))
        return SettlementResult(
            refund_id="re_test",
            refunded_cents=int(breakdown.refund_for_unused_days * 100),
            deposit_release_id=deposit_hold_id,
            released_cents=int(breakdown.deposit_to_be_returned * 100),
            late_fee_intent_id="pi_late",
            late_fee_cents=int((breakdown.penalty_amount or 0) * 100),
        )

    monkeypatch.setattr(tasks, "apply_refund_breakdown", fake_apply)
    return seen


def test_settle_booking_return_recomputes_and_applies(captured_breakdowns):
    result = tasks.settle_booking_return.delay(
        "booking-1",
        "100.00",
        "500.00",
        "2024-01-01",
        "2024-01-05",
        "2024-01-08",
        "pi_charge",
        "pi_deposit",
        "cus_renter",
    ).get()

    breakdown, charge_id, booking_ref, hold_id, customer_id = captured_breakdowns[0]
    assert breakdown.penalty_amount == Decimal("400.00")
    assert charge_id == "pi_charge"
    assert booking_ref == "booking-1"
    assert hold_id == "pi_deposit"
    assert customer_id == "cus_renter"

    assert result["breakdown"]["total_earnings"] == "900.00"
    assert result["breakdown"]["penalty_days"] == 2
    assert result["settlement"] == {
        "refund_id": "re_test",
        "refunded_cents": 0,
        "deposit_release_id": "pi_deposit",
        "released_cents": 50000,
        "late_fee_intent_id": "pi_late",
        "late_fee_cents": 40000,
    }


def test_settle_booking_return_without_return_date(captured_breakdowns):
    result = tasks.settle_booking_return(
        "booking-2",
        "50",
        "0",
        "2024-01-01",
        "2024-01-02",
        None,
        "pi_charge",
        deposit_hold_id="pi_deposit",
    )

    assert result["breakdown"]["days_used"] == 2
    assert "penalty_amount" not in result["breakdown"]
    assert captured_breakdowns[0][3] == "pi_deposit"
    assert captured_breakdowns[0][4] is None


def test_settle_booking_return_uses_configured_policy(captured_breakdowns, settings):
    settings.RENTAL_LATE_GRACE_DAYS = 0

    result = tasks.settle_booking_return(
        "booking-3", "100", "0", "2024-01-01", "2024-01-05", "2024-01-06", "pi_charge"
    )

    assert result["breakdown"]["penalty_days"] == 1


def test_invalid_dates_are_not_retried(captured_breakdowns):
    with pytest.raises(InvalidRange):
        tasks.settle_booking_return(
            "booking-4", "100", "0", "2024-01-05", "2024-01-01", None, "pi_charge"
        )
    assert captured_breakdowns == []


def test_only_transient_stripe_errors_trigger_retries():
    assert tasks.settle_booking_return.autoretry_for == (StripeTransientError,)
    assert tasks.settle_booking_return.name == "settlements.settle_booking_return"

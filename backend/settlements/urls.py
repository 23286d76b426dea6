"""URL routing for the settlements API."""

from django.urls import path

from .api import refund_quote, rental_quote, settlement_policy

app_name = "settlements"

urlpatterns = [
    path("refund-quote/", refund_quote, name="refund_quote"),
    path("rental-quote/", rental_quote, name="rental_quote"),
    path("policy/", settlement_policy, name="policy"),
]

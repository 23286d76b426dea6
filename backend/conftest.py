"""Shared pytest configuration and fixtures."""

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

User = get_user_model()


@pytest.fixture
def api_client():
    """DRF API client for request/response helpers."""
    return APIClient()


@pytest.fixture
def renter_user(db):
    return User.objects.create_user(username="renter", email="renter@example.com", password="pass123")


@pytest.fixture
def auth_client(api_client, renter_user):
    """API client authenticated as the renter."""
    api_client.force_authenticate(user=renter_user)
    return api_client

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts import policy


@pytest.fixture
def make_user(db):
    def _make(role, username=None, **extra):
        return get_user_model().objects.create_user(
            username=username or role, password="s3cret-pass", role=role, **extra)
    return _make


@pytest.fixture
def api_as(make_user):
    """APIClient authenticated as a (possibly new) user of the given role."""
    def _api(role_or_user):
        user = make_user(role_or_user) if isinstance(role_or_user, str) else role_or_user
        client = APIClient()
        client.force_authenticate(user=user)
        client.user = user
        return client
    return _api


@pytest.fixture
def quotation_payload():
    return {
        "client_name": "Kigali Traders Ltd",
        "client_quote": "450.00",
        "currency": "USD",
        "destination": "Kigali",
        "freight_mode": "Air Freight",
        "request_type": "Import",
        "commodities": [
            {
                "name": "Electronics",
                "quantity_kg": "100",
                "charges": [
                    {"description": "Air freight", "rate": "2.50"},
                    {"description": "Handling", "rate": "0.50"},
                ],
            },
        ],
    }


@pytest.fixture
def won_quotation(make_user):
    """A quotation created by a sales agent and approved by an admin."""
    from quotes import services

    agent = make_user(policy.SALES_AGENT, username="agent_owner")
    admin = make_user(policy.ADMIN, username="approver")
    quotation = services.create_quotation(
        policy.AuthContext.from_user(agent),
        {"client_name": "Kigali Traders Ltd", "client_quote": Decimal("450"), "destination": "Kigali"},
        [
            {"name": "Electronics", "quantity_kg": Decimal("100"),
             "charges": [{"description": "Air freight", "rate": Decimal("2.50")},
                         {"description": "Handling", "rate": Decimal("0.50")}]},
            {"name": "Textiles", "quantity_kg": Decimal("50"),
             "charges": [{"description": "Air freight", "rate": Decimal("1.20")}]},
        ],
    )
    return services.approve_quotation(policy.AuthContext.from_user(admin), quotation)

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from accounts import policy
from accounts.policy import AccessDenied, AuthContext
from pricing.exceptions import PricingValidationError
from quotes import services
from quotes.models import QuotationCharge

pytestmark = pytest.mark.django_db


def test_create_requires_capability(make_user):
    partner = AuthContext.from_user(make_user(policy.PARTNER))
    with pytest.raises(AccessDenied):
        services.create_quotation(partner, {"client_name": "X"}, [])


def test_invalid_client_quote_writes_nothing(make_user):
    agent = AuthContext.from_user(make_user(policy.SALES_AGENT))
    with pytest.raises(PricingValidationError) as exc:
        services.create_quotation(agent, {"client_name": "X", "client_quote": "-5"}, [])
    assert exc.value.field == "client_quote"


def test_empty_commodities_become_one_blank_row(make_user):
    agent = AuthContext.from_user(make_user(policy.SALES_AGENT))
    quotation = services.create_quotation(agent, {"client_name": "X", "client_quote": "10"}, [])
    assert quotation.commodities.count() == 1
    assert quotation.buy_rate == Decimal("0")
    assert quotation.profit_percentage is None


def test_won_quotation_lines_are_frozen(won_quotation):
    commodity = won_quotation.commodities.first()
    charge = commodity.charges.first()
    charge.rate = Decimal("9.99")
    with pytest.raises(ValidationError):
        charge.save()
    with pytest.raises(ValidationError):
        QuotationCharge(commodity=commodity, description="late", rate=Decimal("1")).save()


def test_approve_stamps_approver(won_quotation):
    assert won_quotation.status == 'won'
    assert won_quotation.approved_by.username == "approver"
    # 100 x 3.00 + 50 x 1.20
    assert won_quotation.buy_rate == Decimal("360.00")
    assert won_quotation.total_volume_kg == Decimal("150")

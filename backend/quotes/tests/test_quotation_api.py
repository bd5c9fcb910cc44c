from decimal import Decimal

import pytest

from accounts import policy
from customers.models import Client
from quotes.models import Quotation

pytestmark = pytest.mark.django_db

URL = '/api/quotations/'


def _dec(x) -> Decimal:
    return Decimal(str(x))


def test_create_prices_the_quotation(api_as, quotation_payload):
    api = api_as(policy.SALES_AGENT)
    resp = api.post(URL, quotation_payload, format='json')
    assert resp.status_code == 201, resp.content

    body = resp.data
    # 100 kg x (2.50 + 0.50) = 300.00; 450 - 300 = 150; 150 / 300 = 50%
    assert _dec(body['buy_rate']) == Decimal("300.00")
    assert _dec(body['profit']) == Decimal("150.00")
    assert _dec(body['profit_percentage']) == Decimal("50.00")
    assert body['profit_percentage_display'] == "50.00%"
    assert _dec(body['total_volume_kg']) == Decimal("100")
    assert body['status'] == 'pending'
    assert body['created_by'] == api.user.pk
    assert body['quote_sent_by'] == api.user.display_name
    assert len(body['commodities'][0]['charges']) == 2


def test_zero_buy_rate_has_no_percentage(api_as, quotation_payload):
    quotation_payload['commodities'] = [{"name": "Samples", "quantity_kg": "0", "charges": []}]
    quotation_payload['client_quote'] = "80"
    resp = api_as(policy.SALES_DIRECTOR).post(URL, quotation_payload, format='json')
    assert resp.status_code == 201, resp.content
    assert _dec(resp.data['buy_rate']) == Decimal("0")
    assert _dec(resp.data['profit']) == Decimal("80.00")
    assert resp.data['profit_percentage'] is None
    # an empty charge list becomes one zero-rate charge
    assert len(resp.data['commodities'][0]['charges']) == 1


def test_quote_below_cost_gives_negative_profit(api_as, quotation_payload):
    quotation_payload['client_quote'] = "240"
    resp = api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json')
    assert resp.status_code == 201
    assert _dec(resp.data['profit']) == Decimal("-60.00")
    assert _dec(resp.data['profit_percentage']) == Decimal("-20.00")


@pytest.mark.parametrize("bad_rate", ["-1", "abc", "NaN"])
def test_invalid_rates_are_rejected(api_as, quotation_payload, bad_rate):
    quotation_payload['commodities'][0]['charges'][0]['rate'] = bad_rate
    resp = api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json')
    assert resp.status_code == 400
    assert Quotation.objects.count() == 0


def test_client_name_or_client_required(api_as, quotation_payload):
    del quotation_payload['client_name']
    resp = api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json')
    assert resp.status_code == 400


@pytest.mark.parametrize("role", [policy.PARTNER, policy.FINANCE_OFFICER, policy.ADMIN])
def test_roles_without_create_are_forbidden(api_as, quotation_payload, role):
    resp = api_as(role).post(URL, quotation_payload, format='json')
    assert resp.status_code == 403


def test_everyone_can_list(api_as, quotation_payload):
    api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json')
    resp = api_as(policy.PARTNER).get(URL)
    assert resp.status_code == 200
    assert len(resp.data) == 1


class TestEditing:
    def test_agent_cannot_edit(self, api_as, quotation_payload):
        api = api_as(policy.SALES_AGENT)
        qid = api.post(URL, quotation_payload, format='json').data['id']
        resp = api.patch(f'{URL}{qid}/', {"client_quote": "500"}, format='json')
        assert resp.status_code == 403

    def test_director_edit_reprices(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        qid = api.post(URL, quotation_payload, format='json').data['id']
        resp = api.patch(f'{URL}{qid}/', {"client_quote": "600"}, format='json')
        assert resp.status_code == 200, resp.content
        assert _dec(resp.data['profit']) == Decimal("300.00")
        assert _dec(resp.data['profit_percentage']) == Decimal("100.00")

    def test_director_edit_replaces_commodities(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        qid = api.post(URL, quotation_payload, format='json').data['id']
        resp = api.patch(f'{URL}{qid}/', {
            "commodities": [{"name": "Coffee", "quantity_kg": "200", "charges": [{"rate": "1.00"}]}],
        }, format='json')
        assert resp.status_code == 200, resp.content
        assert _dec(resp.data['buy_rate']) == Decimal("200.00")
        assert [c['name'] for c in resp.data['commodities']] == ["Coffee"]

    def test_changing_client_takes_new_client_name(self, api_as, quotation_payload):
        alpha = Client.objects.create(company_name="Alpha Ltd")
        beta = Client.objects.create(company_name="Beta Ltd")
        api = api_as(policy.SALES_DIRECTOR)
        payload = dict(quotation_payload, client=alpha.pk)
        payload.pop("client_name")
        created = api.post(URL, payload, format='json').data
        assert created['client_name'] == "Alpha Ltd"

        resp = api.patch(f"{URL}{created['id']}/", {"client": beta.pk}, format='json')
        assert resp.status_code == 200, resp.content
        assert resp.data['client'] == beta.pk
        assert resp.data['client_name'] == "Beta Ltd"

    def test_director_cannot_edit_won(self, api_as, won_quotation):
        resp = api_as(policy.SALES_DIRECTOR).patch(
            f'{URL}{won_quotation.pk}/', {"remarks": "late change"}, format='json')
        assert resp.status_code == 409


class TestApproval:
    def test_admin_approves_pending(self, api_as, quotation_payload):
        qid = api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json').data['id']
        admin = api_as(policy.ADMIN)
        resp = admin.post(f'{URL}{qid}/approve/')
        assert resp.status_code == 200
        assert resp.data['status'] == 'won'
        assert resp.data['approved_by'] == admin.user.pk
        assert resp.data['approved_at'] is not None

        resp = admin.post(f'{URL}{qid}/approve/')
        assert resp.status_code == 409

    def test_director_cannot_approve(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        qid = api.post(URL, quotation_payload, format='json').data['id']
        assert api.post(f'{URL}{qid}/approve/').status_code == 403

    def test_reject_requires_reason(self, api_as, quotation_payload):
        qid = api_as(policy.SALES_AGENT).post(URL, quotation_payload, format='json').data['id']
        admin = api_as(policy.ADMIN)
        resp = admin.post(f'{URL}{qid}/reject/', {"reason": "   "}, format='json')
        assert resp.status_code == 400
        assert Quotation.objects.get(pk=qid).status == 'pending'

        resp = admin.post(f'{URL}{qid}/reject/', {"reason": "Price too high"}, format='json')
        assert resp.status_code == 200
        assert resp.data['status'] == 'lost'
        assert resp.data['rejection_reason'] == "Price too high"

    def test_director_can_edit_lost(self, api_as, quotation_payload):
        director = api_as(policy.SALES_DIRECTOR)
        qid = director.post(URL, quotation_payload, format='json').data['id']
        api_as(policy.ADMIN).post(f'{URL}{qid}/reject/', {"reason": "Too slow"}, format='json')
        resp = director.patch(f'{URL}{qid}/', {"client_quote": "400"}, format='json')
        assert resp.status_code == 200
        assert _dec(resp.data['profit']) == Decimal("100.00")


class TestLineRemoval:
    def _create(self, api, payload):
        payload['commodities'].append(
            {"name": "Textiles", "quantity_kg": "50", "charges": [{"rate": "1.20"}]})
        return api.post(URL, payload, format='json').data

    def test_remove_commodity_reprices(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        body = self._create(api, quotation_payload)
        assert _dec(body['buy_rate']) == Decimal("360.00")

        second = body['commodities'][1]['id']
        resp = api.delete(f"{URL}{body['id']}/commodities/{second}/")
        assert resp.status_code == 200
        assert resp.data['removed'] is True
        assert _dec(resp.data['quotation']['buy_rate']) == Decimal("300.00")

    def test_last_commodity_is_kept(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        body = api.post(URL, quotation_payload, format='json').data
        only = body['commodities'][0]['id']
        resp = api.delete(f"{URL}{body['id']}/commodities/{only}/")
        assert resp.status_code == 200
        assert resp.data['removed'] is False
        assert len(resp.data['quotation']['commodities']) == 1

    def test_remove_charge_and_last_charge_is_kept(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        body = api.post(URL, quotation_payload, format='json').data
        commodity = body['commodities'][0]
        first, second = [c['id'] for c in commodity['charges']]

        resp = api.delete(f"{URL}{body['id']}/commodities/{commodity['id']}/charges/{second}/")
        assert resp.data['removed'] is True
        # 100 kg x 2.50
        assert _dec(resp.data['quotation']['buy_rate']) == Decimal("250.00")

        resp = api.delete(f"{URL}{body['id']}/commodities/{commodity['id']}/charges/{first}/")
        assert resp.data['removed'] is False

    def test_unknown_commodity_is_404(self, api_as, quotation_payload):
        api = api_as(policy.SALES_DIRECTOR)
        body = api.post(URL, quotation_payload, format='json').data
        assert api.delete(f"{URL}{body['id']}/commodities/999999/").status_code == 404

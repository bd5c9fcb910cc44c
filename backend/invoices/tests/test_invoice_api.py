import re
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from accounts import policy
from customers.models import Client
from invoices.models import Invoice

pytestmark = pytest.mark.django_db

NUMBER_RE = re.compile(r"^AWC-\d{6}-\d{3,}$")


def _dec(x) -> Decimal:
    return Decimal(str(x))


def _generate(api, quotation, payload=None):
    return api.post(f'/api/quotations/{quotation.pk}/generate-invoice/', payload or {}, format='json')


class TestGenerateFromQuotation:
    def test_owner_agent_generates_invoice(self, api_as, won_quotation):
        resp = _generate(api_as(won_quotation.created_by), won_quotation, {"awb_number": "123-4567"})
        assert resp.status_code == 201, resp.content
        body = resp.data

        assert NUMBER_RE.match(body['invoice_number'])
        assert body['quotation'] == won_quotation.pk
        assert body['client_name'] == "Kigali Traders Ltd"
        assert body['awb_number'] == "123-4567"
        assert body['payment_conditions'] == "Net 30 days"
        assert body['status'] == 'pending'

        # one item per commodity: 100 x (2.50 + 0.50) and 50 x 1.20
        totals = [_dec(i['total']) for i in body['items']]
        assert totals == [Decimal("300.00"), Decimal("60.00")]
        assert _dec(body['sub_total']) == Decimal("360.00")
        assert _dec(body['tva']) == Decimal("64.80")
        assert _dec(body['total_amount']) == Decimal("424.80")
        assert _dec(body['vat_rate']) == Decimal("0.18")

        issue = timezone.localdate()
        assert body['issue_date'] == issue.isoformat()
        assert body['due_date'] == (issue + timedelta(days=30)).isoformat()

    def test_second_invoice_is_refused(self, api_as, won_quotation):
        api = api_as(won_quotation.created_by)
        assert _generate(api, won_quotation).status_code == 201
        resp = _generate(api, won_quotation)
        assert resp.status_code == 409
        assert Invoice.objects.filter(quotation=won_quotation).count() == 1

    def test_other_agent_cannot_invoice(self, api_as, make_user, won_quotation):
        other = make_user(policy.SALES_AGENT, username="someone_else")
        assert _generate(api_as(other), won_quotation).status_code == 403

    def test_director_invoices_any_won_quotation(self, api_as, won_quotation):
        assert _generate(api_as(policy.SALES_DIRECTOR), won_quotation).status_code == 201

    @pytest.mark.parametrize("role", [policy.ADMIN, policy.PARTNER, policy.FINANCE_OFFICER])
    def test_roles_without_invoice_capability(self, api_as, won_quotation, role):
        assert _generate(api_as(role), won_quotation).status_code == 403

    def test_pending_quotation_cannot_be_invoiced(self, api_as, quotation_payload):
        director = api_as(policy.SALES_DIRECTOR)
        qid = director.post('/api/quotations/', quotation_payload, format='json').data['id']
        resp = director.post(f'/api/quotations/{qid}/generate-invoice/', {}, format='json')
        assert resp.status_code == 400

    def test_quotation_shows_linked_invoice(self, api_as, won_quotation):
        api = api_as(won_quotation.created_by)
        invoice_id = _generate(api, won_quotation).data['id']
        resp = api.get(f'/api/quotations/{won_quotation.pk}/')
        assert resp.data['invoice_id'] == invoice_id


class TestManualInvoice:
    def test_vat_rounds_half_up(self, api_as):
        resp = api_as(policy.FINANCE_OFFICER).post('/api/invoices/', {
            "client_name": "Walk-in Customer",
            "items": [{"commodity": "Parcel", "quantity_kg": "1", "charges": [{"rate": "10.03"}]}],
        }, format='json')
        assert resp.status_code == 201, resp.content
        assert _dec(resp.data['sub_total']) == Decimal("10.03")
        assert _dec(resp.data['tva']) == Decimal("1.81")
        assert _dec(resp.data['total_amount']) == Decimal("11.84")

    def test_partner_cannot_create(self, api_as):
        resp = api_as(policy.PARTNER).post('/api/invoices/', {"client_name": "X"}, format='json')
        assert resp.status_code == 403

    def test_edit_items_recomputes_totals(self, api_as):
        api = api_as(policy.FINANCE_OFFICER)
        inv = api.post('/api/invoices/', {
            "client_name": "Walk-in Customer",
            "items": [{"commodity": "Parcel", "quantity_kg": "2", "charges": [{"rate": "5"}]}],
        }, format='json').data
        resp = api.patch(f"/api/invoices/{inv['id']}/", {
            "items": [{"commodity": "Parcel", "quantity_kg": "2", "charges": [{"rate": "5"}, {"rate": "5"}]}],
        }, format='json')
        assert resp.status_code == 200, resp.content
        assert _dec(resp.data['sub_total']) == Decimal("20.00")
        assert _dec(resp.data['total_amount']) == Decimal("23.60")

    def test_issue_date_cannot_be_changed(self, api_as):
        api = api_as(policy.FINANCE_OFFICER)
        inv = api.post('/api/invoices/', {"client_name": "Walk-in Customer", "issue_date": "2025-01-01"},
                       format='json').data
        assert inv['due_date'] == "2025-01-31"

        resp = api.patch(f"/api/invoices/{inv['id']}/", {"issue_date": "2025-03-01"}, format='json')
        assert resp.status_code == 400
        assert 'issue_date' in resp.data
        stored = Invoice.objects.get(pk=inv['id'])
        assert str(stored.issue_date) == "2025-01-01"

        same = api.patch(f"/api/invoices/{inv['id']}/", {"issue_date": "2025-01-01", "awb_number": "AWB-1"},
                         format='json')
        assert same.status_code == 200

    def test_unknown_currency_is_rejected(self, api_as):
        resp = api_as(policy.FINANCE_OFFICER).post('/api/invoices/', {
            "client_name": "Walk-in Customer", "currency": "XYZ",
        }, format='json')
        assert resp.status_code == 400
        assert 'currency' in resp.data

    def test_changing_client_refreshes_client_details(self, api_as):
        alpha = Client.objects.create(company_name="Alpha Ltd", address="1 Alpha Rd", tin_number="111")
        beta = Client.objects.create(company_name="Beta Ltd", address="2 Beta Rd", contact_person="B. Uwase",
                                     tin_number="222")
        api = api_as(policy.FINANCE_OFFICER)
        inv = api.post('/api/invoices/', {"client": alpha.pk}, format='json').data
        assert (inv['client_name'], inv['client_tin']) == ("Alpha Ltd", "111")

        resp = api.patch(f"/api/invoices/{inv['id']}/", {"client": beta.pk}, format='json')
        assert resp.status_code == 200, resp.content
        assert resp.data['client'] == beta.pk
        assert resp.data['client_name'] == "Beta Ltd"
        assert resp.data['client_address'] == "2 Beta Rd"
        assert resp.data['client_contact_person'] == "B. Uwase"
        assert resp.data['client_tin'] == "222"

    def test_explicit_client_name_wins_over_client(self, api_as):
        beta = Client.objects.create(company_name="Beta Ltd")
        api = api_as(policy.FINANCE_OFFICER)
        inv = api.post('/api/invoices/', {"client_name": "Walk-in Customer"}, format='json').data
        resp = api.patch(f"/api/invoices/{inv['id']}/", {"client": beta.pk, "client_name": "Beta Ltd (Musanze)"},
                         format='json')
        assert resp.data['client_name'] == "Beta Ltd (Musanze)"


class TestPayment:
    def _invoice(self, api_as, won_quotation):
        return _generate(api_as(won_quotation.created_by), won_quotation).data

    def test_finance_marks_paid_once(self, api_as, won_quotation):
        inv = self._invoice(api_as, won_quotation)
        finance = api_as(policy.FINANCE_OFFICER)
        resp = finance.post(f"/api/invoices/{inv['id']}/mark-paid/")
        assert resp.status_code == 200
        assert resp.data['status'] == 'paid'
        assert resp.data['paid_at'] is not None

        assert finance.post(f"/api/invoices/{inv['id']}/mark-paid/").status_code == 409

    def test_paid_invoice_cannot_be_edited(self, api_as, won_quotation):
        inv = self._invoice(api_as, won_quotation)
        finance = api_as(policy.FINANCE_OFFICER)
        finance.post(f"/api/invoices/{inv['id']}/mark-paid/")
        resp = finance.patch(f"/api/invoices/{inv['id']}/", {"awb_number": "X"}, format='json')
        assert resp.status_code == 409

    def test_director_cannot_mark_paid(self, api_as, won_quotation):
        inv = self._invoice(api_as, won_quotation)
        resp = api_as(policy.SALES_DIRECTOR).post(f"/api/invoices/{inv['id']}/mark-paid/")
        assert resp.status_code == 403

    def test_overdue_is_derived(self, api_as, won_quotation):
        inv = self._invoice(api_as, won_quotation)
        Invoice.objects.filter(pk=inv['id']).update(due_date=timezone.localdate() - timedelta(days=1))

        api = api_as(policy.FINANCE_OFFICER)
        resp = api.get(f"/api/invoices/{inv['id']}/")
        assert resp.data['status'] == 'pending'
        assert resp.data['display_status'] == 'overdue'

        assert [i['id'] for i in api.get('/api/invoices/', {"status": "overdue"}).data] == [inv['id']]
        assert api.get('/api/invoices/', {"status": "pending"}).data == []

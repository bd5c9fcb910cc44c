import csv
import io

import pytest

from accounts import policy
from accounts.policy import AuthContext
from invoices import services as invoicing

pytestmark = pytest.mark.django_db

ACCOUNTING_URLS = [
    "/api/reports/income-statement/",
    "/api/reports/balance-sheet/",
    "/api/reports/tax/",
    "/api/reports/cash-flow/",
    "/api/reports/audit-trail/",
]


@pytest.fixture
def invoiced(won_quotation):
    return invoicing.create_invoice_from_quotation(AuthContext.from_user(won_quotation.created_by), won_quotation)


class TestAccess:
    @pytest.mark.parametrize("url", ACCOUNTING_URLS)
    @pytest.mark.parametrize("role", [policy.SALES_AGENT, policy.SALES_DIRECTOR, policy.PARTNER])
    def test_accounting_restricted(self, api_as, url, role):
        resp = api_as(role).get(url)
        assert resp.status_code == 403
        assert "Finance Officers" in resp.data["detail"]

    @pytest.mark.parametrize("url", ACCOUNTING_URLS)
    @pytest.mark.parametrize("role", [policy.FINANCE_OFFICER, policy.ADMIN])
    def test_accounting_open_to_finance_and_admin(self, api_as, url, role):
        assert api_as(role).get(url).status_code == 200

    def test_sales_performance_needs_capability(self, api_as):
        assert api_as(policy.SALES_AGENT).get("/api/reports/sales-performance/").status_code == 403
        assert api_as(policy.PARTNER).get("/api/reports/sales-performance/").status_code == 200

    def test_anonymous_refused(self, client):
        assert client.get("/api/reports/metrics/").status_code in (401, 403)


class TestMetricsApi:
    def test_money_rendered_as_strings(self, api_as, invoiced):
        resp = api_as(policy.FINANCE_OFFICER).get("/api/reports/metrics/")
        assert resp.status_code == 200
        metrics = resp.data["metrics"]
        assert metrics["total_revenue"] == "424.80"
        assert metrics["total_profit"] == "90.00"
        assert resp.data["top_clients"][0]["name"] == "Kigali Traders Ltd"

    def test_bad_period_is_400(self, api_as):
        resp = api_as(policy.ADMIN).get("/api/reports/metrics/", {"from": "yesterday"})
        assert resp.status_code == 400
        assert "YYYY-MM-DD" in resp.data["detail"]

    def test_missing_fx_rate_is_409(self, api_as, invoiced):
        resp = api_as(policy.ADMIN).get("/api/reports/metrics/", {"currency": "RWF"})
        assert resp.status_code == 409
        assert "USD->RWF" in resp.data["detail"]
        assert "fetch_fx" in resp.data["detail"]

    def test_period_outside_data(self, api_as, invoiced):
        resp = api_as(policy.ADMIN).get("/api/reports/income-statement/", {"from": "2001-01-01", "to": "2001-12-31"})
        assert resp.data["revenue"] == "0.00"
        assert resp.data["period"] == {"from": "2001-01-01", "to": "2001-12-31"}


class TestExports:
    def _rows(self, resp):
        return list(csv.reader(io.StringIO(resp.content.decode("utf-8"))))

    def test_quotations_csv(self, api_as, won_quotation):
        resp = api_as(policy.SALES_DIRECTOR).get("/api/reports/export/quotations.csv")
        assert resp.status_code == 200
        assert resp["Content-Type"].startswith("text/csv")
        assert 'filename="quotations-report-' in resp["Content-Disposition"]

        rows = self._rows(resp)
        assert rows[0] == ["Date", "Client", "Destination", "Volume", "Buy Rate", "Sell Rate", "Profit", "Status", "Agent"]
        assert rows[1][1:8] == ["Kigali Traders Ltd", "Kigali", "150.000", "360.00", "450.00", "90.00", "won"]
        # every field is quoted
        assert resp.content.decode("utf-8").splitlines()[0].startswith('"Date","Client"')

    def test_financial_csv(self, api_as, invoiced):
        rows = self._rows(api_as(policy.FINANCE_OFFICER).get("/api/reports/export/financial.csv"))
        assert rows[0] == ["Date", "Type", "Client", "Amount", "Currency", "Status"]
        assert [r[1] for r in rows[1:]] == ["Quotation", "Invoice"]
        assert rows[2][3:] == ["424.80", "USD", "pending"]

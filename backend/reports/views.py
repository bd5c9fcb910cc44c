import logging
from decimal import Decimal

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts import policy
from accounts.permissions import HasCapability, IsFinanceOrAdmin, auth_context
from backoffice.errors import DomainErrorsMixin
from fx.services import Converter

from . import exports, services
from .services import ReportPeriod

logger = logging.getLogger(__name__)


def _money(value):
    """Decimals leave the API as strings, the way serializers render them."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: _money(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_money(v) for v in value]
    return value


class ReportView(DomainErrorsMixin, APIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = policy.REPORTS_VIEW

    def period(self) -> ReportPeriod:
        return ReportPeriod.from_params(self.request.query_params)

    def converter(self) -> Converter:
        return Converter(self.request.query_params.get('currency'))

    def build(self, request, period, convert):
        raise NotImplementedError

    def get(self, request):
        period = self.period()
        data = self.build(request, period, self.converter())
        logger.debug(f"{self.__class__.__name__} for {request.user.username}: {period.as_dict()}")
        return Response(_money(data))


class FinancialMetricsView(ReportView):
    def build(self, request, period, convert):
        ctx = auth_context(request)
        return {
            'metrics': services.financial_metrics(ctx, period, convert),
            'monthly_trends': services.monthly_trends(ctx, period, convert),
            'top_clients': services.top_clients(ctx, period, convert),
        }


class SalesPerformanceView(ReportView):
    required_capability = policy.SALES_PERFORMANCE_VIEW

    def build(self, request, period, convert):
        ctx = auth_context(request)
        return {
            'period': period.as_dict(),
            'currency': convert.to_ccy,
            'users': services.user_activities(ctx, period, convert),
        }


class AccountingView(ReportView):
    permission_classes = [IsAuthenticated, IsFinanceOrAdmin]


class IncomeStatementView(AccountingView):
    def build(self, request, period, convert):
        return services.income_statement(period, convert)


class BalanceSheetView(AccountingView):
    def build(self, request, period, convert):
        return services.balance_sheet(period, convert)


class TaxSummaryView(AccountingView):
    def build(self, request, period, convert):
        return services.tax_summary(period, convert)


class CashFlowView(AccountingView):
    def build(self, request, period, convert):
        return services.cash_flow(period, convert)


class AuditTrailView(AccountingView):
    def build(self, request, period, convert):
        return {'period': period.as_dict(), 'events': services.audit_trail(period)}


class QuotationsExportView(ReportView):
    def get(self, request):
        period = self.period()
        quotations = services.scoped_quotations(auth_context(request), period)
        logger.info(f"Quotations report exported by {request.user.username}: {period.as_dict()}")
        return exports.quotations_csv(quotations)


class FinancialExportView(ReportView):
    def get(self, request):
        period = self.period()
        quotations = services.scoped_quotations(auth_context(request), period)
        invoices = services.period_invoices(period)
        logger.info(f"Financial report exported by {request.user.username}: {period.as_dict()}")
        return exports.financial_csv(quotations, invoices)

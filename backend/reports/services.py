"""
Finance and sales reporting over quotations and invoices.

Every report works on a ``ReportPeriod``: quotations are selected by
``created_at`` and invoices by ``issue_date``. Money is converted into the
reporting currency (``REPORTING_CURRENCY``) with the latest stored rates.
Invoice statuses are the displayed ones, so pending invoices past their due
date count as overdue.
"""
from __future__ import annotations

import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.utils import timezone

from accounts import policy
from accounts.policy import AuthContext
from fx.services import Converter
from invoices.models import Invoice
from invoices.services import display_status
from invoices.tax_policy import income_tax_rate
from pricing.services.utils import HUNDRED, ZERO, q2
from quotes.models import Quotation

logger = logging.getLogger(__name__)

TOP_CLIENTS = 10
PIPELINE_PROBABILITY = Decimal("0.6")
PIPELINE_HORIZON_DAYS = 45


class ReportError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class ReportPeriod:
    date_from: date
    date_to: date

    @classmethod
    def default(cls, today: Optional[date] = None) -> "ReportPeriod":
        """1 January of the current year up to today."""
        today = today or timezone.localdate()
        return cls(date(today.year, 1, 1), today)

    @classmethod
    def from_params(cls, params) -> "ReportPeriod":
        default = cls.default()
        raw_from = params.get('from') or params.get('date_from')
        raw_to = params.get('to') or params.get('date_to')
        try:
            start = date.fromisoformat(raw_from) if raw_from else default.date_from
            end = date.fromisoformat(raw_to) if raw_to else default.date_to
        except ValueError:
            raise ReportError("Dates must be given as YYYY-MM-DD.")
        if start > end:
            raise ReportError("'from' must not be after 'to'.")
        return cls(start, end)

    def contains(self, value) -> bool:
        if value is None:
            return False
        if isinstance(value, datetime):
            value = timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
        return self.date_from <= value <= self.date_to

    def as_dict(self) -> Dict[str, str]:
        return {'from': self.date_from.isoformat(), 'to': self.date_to.isoformat()}


def _bounds(period: ReportPeriod):
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(period.date_from, time.min), tz)
    end = timezone.make_aware(datetime.combine(period.date_to + timedelta(days=1), time.min), tz)
    return start, end


def scoped_quotations(ctx: AuthContext, period: ReportPeriod, user_ids: Optional[Iterable[int]] = None,
                      statuses: Optional[Iterable[str]] = None):
    """
    Quotations created in the period that ``ctx`` may report on. A sales
    director sees their own quotations and those of sales agents; every other
    role sees all of them.
    """
    start, end = _bounds(period)
    qs = (Quotation.objects
          .filter(created_at__gte=start, created_at__lt=end)
          .select_related('created_by', 'approved_by')
          .order_by('-created_at'))
    if ctx.role == policy.SALES_DIRECTOR:
        qs = qs.filter(Q(created_by_id=ctx.user_id) | Q(created_by__role=policy.SALES_AGENT))
    if user_ids:
        qs = qs.filter(created_by_id__in=list(user_ids))
    if statuses:
        qs = qs.filter(status__in=list(statuses))
    return qs


def period_invoices(period: ReportPeriod, statuses: Optional[Iterable[str]] = None,
                    today: Optional[date] = None) -> List[Invoice]:
    invoices = list(Invoice.objects
                    .filter(issue_date__gte=period.date_from, issue_date__lte=period.date_to)
                    .select_related('created_by', 'quotation')
                    .order_by('-issue_date', '-sequence'))
    if statuses:
        wanted = set(statuses)
        invoices = [inv for inv in invoices if display_status(inv, today) in wanted]
    return invoices


def _sum(values: Iterable[Decimal]) -> Decimal:
    return q2(sum(values, ZERO))


def _pct(part, whole) -> Decimal:
    if not whole:
        return q2(ZERO)
    return q2(Decimal(part) / Decimal(whole) * HUNDRED)


def financial_metrics(ctx: AuthContext, period: ReportPeriod, convert: Optional[Converter] = None,
                      today: Optional[date] = None) -> Dict[str, Any]:
    convert = convert or Converter()
    quotations = list(scoped_quotations(ctx, period))
    invoices = period_invoices(period)

    total_revenue = _sum(convert(inv.total_amount, inv.currency) for inv in invoices)
    statuses = Counter(display_status(inv, today) for inv in invoices)
    outcomes = Counter(q.status for q in quotations)

    return {
        'period': period.as_dict(),
        'currency': convert.to_ccy,
        'total_revenue': total_revenue,
        'total_profit': _sum(convert(q.profit, q.currency) for q in quotations if q.status == 'won'),
        'total_loss': _sum(convert(q.profit, q.currency) for q in quotations if q.status == 'lost'),
        'total_invoices': len(invoices),
        'paid_invoices': statuses['paid'],
        'pending_invoices': statuses['pending'],
        'overdue_invoices': statuses['overdue'],
        'total_quotations': len(quotations),
        'won_quotations': outcomes['won'],
        'lost_quotations': outcomes['lost'],
        'pending_quotations': outcomes['pending'],
        'avg_deal_size': q2(total_revenue / len(invoices)) if invoices else q2(ZERO),
        'win_rate': _pct(outcomes['won'], len(quotations)),
    }


def _report_users(ctx: AuthContext):
    users = get_user_model().objects.order_by('username')
    if ctx.role == policy.SALES_DIRECTOR:
        users = users.filter(Q(pk=ctx.user_id) | Q(role=policy.SALES_AGENT))
    return users


def user_activities(ctx: AuthContext, period: ReportPeriod, convert: Optional[Converter] = None) -> List[Dict[str, Any]]:
    """Per-user quotation outcomes and invoiced revenue; idle users are listed for admins only."""
    convert = convert or Converter()
    quotations = list(scoped_quotations(ctx, period))
    invoices = period_invoices(period)

    rows = []
    for user in _report_users(ctx):
        own = [q for q in quotations if q.created_by_id == user.pk]
        won = [q for q in own if q.status == 'won']
        lost = [q for q in own if q.status == 'lost']
        own_invoices = [inv for inv in invoices if inv.created_by_id == user.pk]
        activities = len(own) + len(own_invoices)
        if activities == 0 and ctx.role != policy.ADMIN:
            continue
        rows.append({
            'user_id': user.pk,
            'user_name': user.display_name,
            'role': user.role,
            'quotations_created': len(own),
            'quotations_won': len(won),
            'quotations_lost': len(lost),
            'total_profit': _sum(convert(q.profit, q.currency) for q in won),
            'total_revenue': _sum(convert(inv.total_amount, inv.currency) for inv in own_invoices),
            'win_rate': _pct(len(won), len(own)),
            # quotations are newest first
            'last_active': own[0].created_at if own else user.date_joined,
            'activities_count': activities,
        })
    return rows


def monthly_trends(ctx: AuthContext, period: ReportPeriod, convert: Optional[Converter] = None) -> List[Dict[str, Any]]:
    convert = convert or Converter()
    months: Dict[str, Dict[str, Any]] = {}

    def bucket(key):
        return months.setdefault(key, {'month': key, 'revenue': ZERO, 'profit': ZERO, 'quotations': 0})

    for inv in period_invoices(period):
        row = bucket(inv.issue_date.strftime('%Y-%m'))
        row['revenue'] += convert(inv.total_amount, inv.currency)
    for q in scoped_quotations(ctx, period):
        row = bucket(timezone.localtime(q.created_at).strftime('%Y-%m'))
        row['quotations'] += 1
        if q.status == 'won':
            row['profit'] += convert(q.profit, q.currency)

    out = []
    for key in sorted(months):
        row = months[key]
        row['revenue'] = q2(row['revenue'])
        row['profit'] = q2(row['profit'])
        out.append(row)
    return out


def top_clients(ctx: AuthContext, period: ReportPeriod, convert: Optional[Converter] = None,
                limit: int = TOP_CLIENTS) -> List[Dict[str, Any]]:
    """
    Clients ranked by invoiced revenue. A client with no invoice in the period
    is credited with the client quote of its won quotations instead.
    """
    convert = convert or Converter()
    invoices = period_invoices(period)
    clients: Dict[str, Dict[str, Any]] = OrderedDict()

    for inv in invoices:
        row = clients.setdefault(inv.client_name, {'name': inv.client_name, 'revenue': ZERO, 'invoices': 0, 'quotations': 0})
        row['revenue'] += convert(inv.total_amount, inv.currency)
        row['invoices'] += 1

    invoiced = {inv.client_name for inv in invoices}
    for q in scoped_quotations(ctx, period):
        if not q.client_name:
            continue
        row = clients.setdefault(q.client_name, {'name': q.client_name, 'revenue': ZERO, 'invoices': 0, 'quotations': 0})
        row['quotations'] += 1
        if q.client_name not in invoiced and q.status == 'won':
            row['revenue'] += convert(q.client_quote, q.currency)

    ranked = [dict(row, revenue=q2(row['revenue'])) for row in clients.values() if row['revenue'] > ZERO]
    ranked.sort(key=lambda r: r['revenue'], reverse=True)
    return ranked[:limit]


def income_statement(period: ReportPeriod, convert: Optional[Converter] = None) -> Dict[str, Any]:
    convert = convert or Converter()
    invoices = period_invoices(period)
    start, end = _bounds(period)
    won = Quotation.objects.filter(created_at__gte=start, created_at__lt=end, status='won')

    revenue = _sum(convert(inv.total_amount, inv.currency) for inv in invoices)
    vat = _sum(convert(inv.tva, inv.currency) for inv in invoices)
    gross_profit = _sum(convert(q.profit, q.currency) for q in won)
    return {
        'period': period.as_dict(),
        'currency': convert.to_ccy,
        'revenue': revenue,
        'vat_collected': vat,
        'net_sales': revenue - vat,
        'gross_profit': gross_profit,
        'net_income': gross_profit - vat,
    }


def balance_sheet(period: ReportPeriod, convert: Optional[Converter] = None,
                  today: Optional[date] = None) -> Dict[str, Any]:
    convert = convert or Converter()
    invoices = period_invoices(period)
    by_status: Dict[str, Decimal] = {'pending': ZERO, 'overdue': ZERO, 'paid': ZERO}
    for inv in invoices:
        by_status[display_status(inv, today)] += convert(inv.total_amount, inv.currency)

    receivables = q2(by_status['pending'] + by_status['overdue'])
    cash = q2(by_status['paid'])
    vat_payable = _sum(convert(inv.tva, inv.currency) for inv in invoices)
    retained = income_statement(period, convert)['net_income']
    return {
        'period': period.as_dict(),
        'currency': convert.to_ccy,
        'assets': {
            'cash_collected': cash,
            'accounts_receivable': receivables,
            'overdue_receivable': q2(by_status['overdue']),
            'total': cash + receivables,
        },
        'liabilities': {
            'vat_payable': vat_payable,
            'total': vat_payable,
        },
        'equity': {
            'retained_earnings': retained,
            'total': retained,
        },
    }


def tax_summary(period: ReportPeriod, convert: Optional[Converter] = None) -> Dict[str, Any]:
    convert = convert or Converter()
    invoices = period_invoices(period)
    rate = income_tax_rate()

    total_vat = _sum(convert(inv.tva, inv.currency) for inv in invoices)
    taxable_income = _sum(convert(inv.sub_total, inv.currency) for inv in invoices)
    estimated = q2(taxable_income * rate)
    return {
        'period': period.as_dict(),
        'currency': convert.to_ccy,
        'total_vat': total_vat,
        'total_revenue': _sum(convert(inv.total_amount, inv.currency) for inv in invoices),
        'taxable_income': taxable_income,
        'income_tax_rate': rate,
        'estimated_income_tax': estimated,
        'quarterly_tax': q2(estimated / 4),
        'total_tax_liability': total_vat + estimated,
    }


def cash_flow(period: ReportPeriod, convert: Optional[Converter] = None,
              today: Optional[date] = None) -> Dict[str, Any]:
    convert = convert or Converter()
    today = today or timezone.localdate()
    invoices = period_invoices(period)
    start, end = _bounds(period)
    quotations = (Quotation.objects
                  .filter(created_at__gte=start, created_at__lt=end, status__in=['won', 'pending'])
                  .select_related('invoice'))

    items = []
    for inv in invoices:
        amount = convert(inv.total_amount, inv.currency)
        if inv.status == 'paid':
            items.append({'date': inv.issue_date, 'category': 'Revenue', 'status': 'actual',
                          'description': f"Payment from {inv.client_name}", 'amount': amount,
                          'source': 'invoice', 'reference': inv.invoice_number})
        else:
            items.append({'date': inv.due_date, 'category': 'Accounts Receivable', 'status': 'projected',
                          'description': f"Expected payment from {inv.client_name}", 'amount': amount,
                          'source': 'invoice', 'reference': inv.invoice_number})

    pipeline_date = today + timedelta(days=PIPELINE_HORIZON_DAYS)
    for q in quotations:
        if q.status == 'won':
            # invoiced quotations are already counted through their invoice
            if getattr(q, 'invoice', None) is not None:
                continue
            items.append({'date': timezone.localtime(q.created_at).date(), 'category': 'New Business',
                          'status': 'actual', 'description': f"Revenue from {q.client_name}",
                          'amount': convert(q.client_quote, q.currency), 'source': 'quotation',
                          'reference': q.pk})
        else:
            items.append({'date': pipeline_date, 'category': 'Pipeline', 'status': 'projected',
                          'description': f"Potential revenue from {q.client_name}",
                          'amount': q2(convert(q.client_quote, q.currency) * PIPELINE_PROBABILITY),
                          'source': 'quotation', 'reference': q.pk})

    items.sort(key=lambda i: i['date'])
    actual = _sum(i['amount'] for i in items if i['status'] == 'actual')
    projected = _sum(i['amount'] for i in items if i['status'] == 'projected')
    return {
        'period': period.as_dict(),
        'currency': convert.to_ccy,
        'items': items,
        'actual_inflows': actual,
        'projected_inflows': projected,
        'total_inflows': actual + projected,
    }


def audit_trail(period: ReportPeriod, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Quotation, invoice and user account events in the period, newest first."""
    start, end = _bounds(period)
    events: List[Dict[str, Any]] = []

    def add(ts, kind, action, reference, description, user=None, amount=None, currency=None):
        if ts is not None and start <= ts < end:
            events.append({
                'timestamp': ts, 'type': kind, 'action': action, 'reference': reference,
                'description': description, 'user': user, 'amount': amount, 'currency': currency,
            })

    quotations = (Quotation.objects
                  .filter(Q(created_at__gte=start, created_at__lt=end) | Q(approved_at__gte=start, approved_at__lt=end))
                  .select_related('created_by', 'approved_by'))
    for q in quotations:
        creator = q.created_by.display_name if q.created_by_id else q.quote_sent_by
        add(q.created_at, 'quotation', 'Created', q.pk, f"Quotation for {q.client_name}",
            creator, q.client_quote, q.currency)
        approver = q.approved_by.display_name if q.approved_by_id else None
        if q.status == 'won':
            add(q.approved_at, 'quotation', 'Approved', q.pk, f"Quotation for {q.client_name} approved",
                approver, q.client_quote, q.currency)
        elif q.status == 'lost':
            add(q.approved_at, 'quotation', 'Rejected', q.pk,
                f"Quotation for {q.client_name} rejected: {q.rejection_reason}",
                approver, q.client_quote, q.currency)

    invoices = (Invoice.objects
                .filter(Q(created_at__gte=start, created_at__lt=end) | Q(paid_at__gte=start, paid_at__lt=end))
                .select_related('created_by'))
    for inv in invoices:
        creator = inv.created_by.display_name if inv.created_by_id else inv.salesperson
        add(inv.created_at, 'invoice', 'Created', inv.invoice_number, f"Invoice for {inv.client_name}",
            creator, inv.total_amount, inv.currency)
        if inv.status == 'paid':
            add(inv.paid_at, 'invoice', 'Payment Received', inv.invoice_number,
                f"Payment received from {inv.client_name}", None, inv.total_amount, inv.currency)

    for user in get_user_model().objects.filter(date_joined__gte=start, date_joined__lt=end):
        add(user.date_joined, 'user', 'Account Created', user.username,
            f"{user.display_name} joined as {user.get_role_display()}", user.display_name)

    events.sort(key=lambda e: e['timestamp'], reverse=True)
    return events[:limit] if limit else events

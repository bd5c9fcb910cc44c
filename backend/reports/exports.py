"""CSV exports of the quotation and financial reports."""
import csv
from datetime import date
from typing import Iterable, Optional

from django.http import HttpResponse
from django.utils import timezone

from invoices.models import Invoice
from invoices.services import display_status
from quotes.models import Quotation

QUOTATION_HEADER = ['Date', 'Client', 'Destination', 'Volume', 'Buy Rate', 'Sell Rate', 'Profit', 'Status', 'Agent']
FINANCIAL_HEADER = ['Date', 'Type', 'Client', 'Amount', 'Currency', 'Status']


def _csv_response(name: str, today: Optional[date] = None) -> HttpResponse:
    today = today or timezone.localdate()
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{name}-report-{today.isoformat()}.csv"'
    return response


def _agent(quotation: Quotation) -> str:
    if quotation.created_by_id:
        return quotation.created_by.display_name
    return quotation.quote_sent_by


def write_quotations(out, quotations: Iterable[Quotation]) -> None:
    writer = csv.writer(out, quoting=csv.QUOTE_ALL)
    writer.writerow(QUOTATION_HEADER)
    for q in quotations:
        writer.writerow([
            timezone.localtime(q.created_at).date().isoformat(),
            q.client_name,
            q.destination,
            q.total_volume_kg,
            q.buy_rate,
            q.client_quote,
            q.profit,
            q.status,
            _agent(q),
        ])


def write_financial(out, quotations: Iterable[Quotation], invoices: Iterable[Invoice],
                    today: Optional[date] = None) -> None:
    writer = csv.writer(out, quoting=csv.QUOTE_ALL)
    writer.writerow(FINANCIAL_HEADER)
    for q in quotations:
        writer.writerow([
            timezone.localtime(q.created_at).date().isoformat(),
            'Quotation',
            q.client_name,
            q.client_quote,
            q.currency,
            q.status,
        ])
    for inv in invoices:
        writer.writerow([
            inv.issue_date.isoformat(),
            'Invoice',
            inv.client_name,
            inv.total_amount,
            inv.currency,
            display_status(inv, today),
        ])


def quotations_csv(quotations) -> HttpResponse:
    response = _csv_response('quotations')
    write_quotations(response, quotations)
    return response


def financial_csv(quotations, invoices) -> HttpResponse:
    response = _csv_response('financial')
    write_financial(response, quotations, invoices)
    return response

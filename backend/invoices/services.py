"""
Invoice building, editing and payment.

Items are priced once, when the invoice is built or its items are replaced:
``item.total = sum(rate x quantity_kg)`` over the item's charges, then
``sub_total``, ``tva`` and ``total_amount`` are derived from the stored
totals with the VAT rate snapshotted on the invoice. A paid invoice is frozen.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounts import policy
from accounts.policy import AccessDenied, AuthContext
from pricing.dataclasses import ChargeLine, InvoiceLine
from pricing.services.calculations import default_due_date, invoice_totals, is_overdue, with_totals
from quotes.models import Quotation
from quotes.services import commodity_lines

from .models import Invoice, InvoiceCharge, InvoiceItem
from .numbering import allocate_invoice_number
from .tax_policy import current_vat_rate, default_payment_conditions, payment_terms_days

logger = logging.getLogger(__name__)

HEADER_FIELDS = (
    'client', 'client_name', 'client_address', 'client_contact_person', 'client_tin',
    'destination', 'door_delivery', 'salesperson', 'deliver_date', 'payment_conditions',
    'validity_date', 'awb_number', 'currency', 'due_date',
)

# invoice header field -> Client attribute
CLIENT_DETAILS = (
    ('client_name', 'company_name'),
    ('client_address', 'address'),
    ('client_contact_person', 'contact_person'),
    ('client_tin', 'tin_number'),
)


class InvoiceError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvoiceLockedError(InvoiceError):
    """Raised when a paid invoice would be changed"""
    status_code = 409


class QuotationAlreadyInvoiced(InvoiceError):
    status_code = 409


def display_status(invoice: Invoice, today: Optional[date] = None) -> str:
    """Stored status, with pending invoices past their due date shown as overdue."""
    today = today or timezone.localdate()
    if is_overdue(invoice.status, invoice.due_date, today):
        return 'overdue'
    return invoice.status


def _to_line(raw) -> InvoiceLine:
    return raw if isinstance(raw, InvoiceLine) else InvoiceLine.from_dict(raw)


def _parse_items(raw: Optional[Iterable[Any]]) -> List[InvoiceLine]:
    lines = [_to_line(i) for i in (raw or [])]
    return with_totals(lines or [InvoiceLine()])


def invoice_lines_from_quotation(quotation: Quotation) -> List[InvoiceLine]:
    """One invoice item per quotation commodity, charges copied across."""
    lines = []
    for commodity in commodity_lines(quotation):
        lines.append(InvoiceLine(
            commodity=commodity.name,
            quantity_kg=commodity.quantity_kg,
            charges=[ChargeLine(description=c.description, rate=c.rate) for c in commodity.charges],
            description=quotation.cargo_description,
        ))
    return with_totals(lines or [InvoiceLine()])


def _write_items(invoice: Invoice, lines: List[InvoiceLine]) -> None:
    invoice.items.all().delete()
    for position, line in enumerate(lines):
        item = InvoiceItem.objects.create(
            invoice=invoice,
            commodity=line.commodity,
            description=line.description,
            quantity_kg=line.quantity_kg,
            total=line.total,
            position=position,
        )
        line.id = item.pk
        for charge in line.charges:
            InvoiceCharge.objects.create(item=item, description=charge.description, rate=charge.rate)


def _apply_totals(invoice: Invoice, lines: List[InvoiceLine]) -> None:
    totals = invoice_totals(lines, invoice.vat_rate)
    invoice.sub_total = totals.sub_total
    invoice.tva = totals.tva
    invoice.total_amount = totals.total_amount


def _assign_header(invoice: Invoice, fields: Dict[str, Any]) -> None:
    for name in HEADER_FIELDS:
        if name in fields and fields[name] is not None:
            setattr(invoice, name, fields[name])
    client = invoice.client
    if client is None:
        return
    # switching client re-copies its details; explicit values in fields win
    client_changed = fields.get('client') is not None
    for name, source in CLIENT_DETAILS:
        if fields.get(name):
            continue
        if client_changed or not getattr(invoice, name):
            setattr(invoice, name, getattr(client, source))


def _build(ctx: AuthContext, fields: Dict[str, Any], lines: List[InvoiceLine],
           quotation: Optional[Quotation] = None) -> Invoice:
    issue_date = fields.get('issue_date') or timezone.localdate()
    invoice = Invoice(
        quotation=quotation,
        issue_date=issue_date,
        due_date=default_due_date(issue_date, payment_terms_days()),
        payment_conditions=default_payment_conditions(),
        vat_rate=current_vat_rate(),
        created_by_id=ctx.user_id,
        salesperson=ctx.name,
    )
    _assign_header(invoice, fields)
    _apply_totals(invoice, lines)

    invoice.invoice_number, invoice.sequence = allocate_invoice_number(issue_date)
    invoice.save()
    _write_items(invoice, lines)
    return invoice


def create_invoice(ctx: AuthContext, fields: Dict[str, Any], items=None) -> Invoice:
    """A free-standing invoice, not tied to a quotation."""
    ctx.require(policy.INVOICE_CREATE)
    lines = _parse_items(items)
    with transaction.atomic():
        invoice = _build(ctx, fields, lines)
    logger.info(f"Invoice {invoice.invoice_number} created by {ctx.name}: total={invoice.total_amount}")
    return invoice


def create_invoice_from_quotation(ctx: AuthContext, quotation: Quotation,
                                  fields: Optional[Dict[str, Any]] = None) -> Invoice:
    """
    Build the invoice of a won quotation. A quotation is invoiced at most once;
    sales agents may only invoice quotations they created.
    """
    ctx.require(policy.QUOTATION_INVOICE)
    fields = dict(fields or {})
    try:
        with transaction.atomic():
            quotation = Quotation.objects.select_for_update().select_related('client').get(pk=quotation.pk)
            has_invoice = Invoice.objects.filter(quotation=quotation).exists()
            if not policy.can_invoice_quotation(ctx, quotation, has_invoice):
                if quotation.status != 'won':
                    raise InvoiceError(
                        f"Only won quotations can be invoiced; quotation {quotation.pk} is {quotation.status}."
                    )
                if has_invoice:
                    raise QuotationAlreadyInvoiced(f"Quotation {quotation.pk} already has an invoice.")
                raise AccessDenied(policy.QUOTATION_INVOICE, ctx.role)

            seeded = {
                'client': quotation.client,
                'client_name': quotation.client_name,
                'destination': quotation.destination,
                'door_delivery': quotation.door_delivery,
                'salesperson': quotation.quote_sent_by or ctx.name,
                'currency': quotation.currency,
            }
            seeded.update({k: v for k, v in fields.items() if v not in (None, '')})
            invoice = _build(ctx, seeded, invoice_lines_from_quotation(quotation), quotation=quotation)
    except IntegrityError:
        raise QuotationAlreadyInvoiced(f"Quotation {quotation.pk} already has an invoice.")

    logger.info(
        f"Invoice {invoice.invoice_number} generated from quotation {quotation.pk} by {ctx.name}: "
        f"total={invoice.total_amount}"
    )
    return invoice


def update_invoice(ctx: AuthContext, invoice: Invoice, fields: Dict[str, Any], items=None) -> Invoice:
    ctx.require(policy.INVOICE_EDIT)
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if not policy.can_edit_invoice(ctx, invoice):
            raise InvoiceLockedError(f"Invoice {invoice.invoice_number} is paid and cannot be edited.")

        _assign_header(invoice, fields)
        if items is not None:
            lines = _parse_items(items)
            _apply_totals(invoice, lines)
            invoice.save()
            _write_items(invoice, lines)
        else:
            invoice.save()

    logger.info(f"Invoice {invoice.invoice_number} updated by {ctx.name}")
    return invoice


def mark_paid(ctx: AuthContext, invoice: Invoice) -> Invoice:
    """pending -> paid. Terminal: the invoice and its items are frozen afterwards."""
    ctx.require(policy.INVOICE_MARK_PAID)
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if not policy.can_mark_invoice_paid(ctx, invoice):
            raise InvoiceLockedError(f"Invoice {invoice.invoice_number} is already paid.")
        invoice.status = 'paid'
        invoice.paid_at = timezone.now()
        invoice.save(update_fields=['status', 'paid_at', 'updated_at'])

    logger.info(f"Invoice {invoice.invoice_number} marked paid by {ctx.name}")
    return invoice

"""
Invoice numbers: ``<PREFIX>-<YYYY><MM>-<NNN>``.

NNN is the next value of the period's counter, zero-padded to three digits
(it simply grows wider past 999). The counter row is locked while it is
bumped, so two invoices issued concurrently never share a number; the unique
constraint on ``Invoice.invoice_number`` backs this up at the storage level.
"""
import logging
from datetime import date
from typing import Tuple

from django.conf import settings
from django.db import transaction

from .models import InvoiceSequence

logger = logging.getLogger(__name__)


def period_key(issue_date: date) -> str:
    return f"{issue_date.year:04d}{issue_date.month:02d}"


def format_invoice_number(period: str, sequence: int, prefix: str = None) -> str:
    prefix = prefix or getattr(settings, 'INVOICE_NUMBER_PREFIX', 'AWC')
    return f"{prefix}-{period}-{sequence:03d}"


def allocate_invoice_number(issue_date: date) -> Tuple[str, int]:
    """Reserve the next number for ``issue_date``'s period; returns (number, sequence)."""
    period = period_key(issue_date)
    with transaction.atomic():
        InvoiceSequence.objects.get_or_create(period=period)
        counter = InvoiceSequence.objects.select_for_update().get(period=period)
        counter.last_value += 1
        counter.save(update_fields=['last_value'])

    number = format_invoice_number(period, counter.last_value)
    logger.debug(f"Allocated invoice number {number}")
    return number, counter.last_value

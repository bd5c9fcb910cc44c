# invoices/tax_policy.py
from decimal import Decimal

from django.conf import settings

from pricing.services.calculations import DEFAULT_PAYMENT_TERMS_DAYS, DEFAULT_VAT_RATE
from pricing.services.utils import d


def current_vat_rate() -> Decimal:
    """
    VAT applied to new invoices, as a fraction (0.18 = 18%).

    The rate is copied onto each invoice when it is built, so a later change
    of INVOICE_VAT_RATE never alters invoices already issued.
    """
    return d(getattr(settings, 'INVOICE_VAT_RATE', DEFAULT_VAT_RATE))


def payment_terms_days() -> int:
    return int(getattr(settings, 'INVOICE_PAYMENT_TERMS_DAYS', DEFAULT_PAYMENT_TERMS_DAYS))


def default_payment_conditions() -> str:
    return f"Net {payment_terms_days()} days"


def income_tax_rate() -> Decimal:
    return d(getattr(settings, 'INCOME_TAX_RATE', '0.21'))

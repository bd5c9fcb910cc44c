"""
Stored exchange rates and conversion.

Rates are stored as "units of quote_ccy per one base_ccy". Conversion uses
the newest stored rate for the pair, trying MID, then SELL, then BUY; when
only the reverse pair is stored its reciprocal is used.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings
from django.utils.timezone import now

from pricing.services.utils import d, q2

from .models import CurrencyRate
from .providers import RateRow

logger = logging.getLogger(__name__)

RATE_PREFERENCE = ('MID', 'SELL', 'BUY')


class RateNotFound(LookupError):
    def __init__(self, base: str, quote: str):
        super().__init__(f"No exchange rate stored for {base}->{quote}; load rates with manage.py fetch_fx")
        self.base = base
        self.quote = quote
        self.message = str(self)


class EnvProvider:
    """
    Reads mid rates from the FX_MID_RATES setting as JSON.
    Example:
      FX_MID_RATES='{"USD": {"RWF": 1300, "EUR": 0.92}}'
    """

    def __init__(self, as_of: Optional[datetime] = None, blob: Optional[str] = None):
        self.as_of = as_of or now()
        blob = blob if blob is not None else getattr(settings, "FX_MID_RATES", "{}")
        try:
            self.table: Dict[str, Dict[str, float]] = json.loads(blob or "{}")
        except ValueError:
            logger.exception("Invalid FX_MID_RATES JSON; falling back to empty table")
            self.table = {}

    def get_mid_rate(self, base: str, quote: str) -> Decimal:
        base, quote = base.upper(), quote.upper()
        if self.table.get(base, {}).get(quote) is not None:
            return d(self.table[base][quote])
        if self.table.get(quote, {}).get(base):
            # Use reciprocal if only reverse is provided
            return Decimal(1) / d(self.table[quote][base])
        raise RateNotFound(base, quote)

    def fetch(self, pairs: List[str]) -> List[RateRow]:
        out = []
        for pair in pairs:
            base, quote = [p.strip().upper() for p in pair.split(":", 1)]
            try:
                rate = self.get_mid_rate(base, quote)
            except RateNotFound:
                logger.warning(f"FX_MID_RATES has no rate for {base}:{quote}")
                continue
            out.append(RateRow(self.as_of, base, quote, rate, 'MID', 'ENV'))
        return out


def upsert_rate(as_of_ts, base_ccy: str, quote_ccy: str, rate, rate_type: str = 'MID', source: str = '') -> CurrencyRate:
    obj, _ = CurrencyRate.objects.update_or_create(
        as_of_ts=as_of_ts,
        base_ccy=base_ccy.upper(),
        quote_ccy=quote_ccy.upper(),
        rate_type=rate_type,
        defaults={'rate': d(rate).quantize(Decimal("0.00000001")), 'source': source},
    )
    return obj


def _latest(base: str, quote: str) -> Optional[CurrencyRate]:
    rows = CurrencyRate.objects.filter(base_ccy=base, quote_ccy=quote)
    for rate_type in RATE_PREFERENCE:
        row = rows.filter(rate_type=rate_type).order_by('-as_of_ts').first()
        if row is not None:
            return row
    return None


def latest_rate(base: str, quote: str) -> Decimal:
    """Units of ``quote`` for one ``base``."""
    base, quote = base.upper(), quote.upper()
    if base == quote:
        return Decimal(1)
    row = _latest(base, quote)
    if row is not None:
        return row.rate
    reverse = _latest(quote, base)
    if reverse is not None and reverse.rate:
        return Decimal(1) / reverse.rate
    logger.warning(f"No FX rate stored for {base}->{quote}")
    raise RateNotFound(base, quote)


def convert(amount, from_ccy: str, to_ccy: str) -> Decimal:
    if (from_ccy or '').upper() == (to_ccy or '').upper():
        return d(amount)
    return q2(d(amount) * latest_rate(from_ccy, to_ccy))


class Converter:
    """Converts many amounts into one currency, looking each rate up once."""

    def __init__(self, to_ccy: Optional[str] = None):
        self.to_ccy = (to_ccy or getattr(settings, 'REPORTING_CURRENCY', 'USD')).upper()
        self._rates: Dict[str, Decimal] = {}

    def __call__(self, amount, from_ccy: Optional[str]) -> Decimal:
        from_ccy = (from_ccy or self.to_ccy).upper()
        if from_ccy == self.to_ccy:
            return d(amount)
        if from_ccy not in self._rates:
            self._rates[from_ccy] = latest_rate(from_ccy, self.to_ccy)
        return q2(d(amount) * self._rates[from_ccy])

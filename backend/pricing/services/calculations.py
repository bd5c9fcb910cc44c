"""
Quotation and invoice arithmetic.

Pure functions over the line dataclasses: no database access and no hidden
state, so recomputing from the same input always gives the same result.

Rounding: per-line contributions keep full precision; totals are rounded to
cents (half-up) once, at the aggregate.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from ..dataclasses import (
    CommodityLine,
    InvoiceLine,
    InvoiceTotals,
    ProfitResult,
    QuotationPricing,
)
from .utils import HUNDRED, ZERO, d, parse_non_negative, q2

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE = Decimal("0.18")
DEFAULT_PAYMENT_TERMS_DAYS = 30


def commodity_buy_rate(commodity: CommodityLine) -> Decimal:
    """quantity_kg x sum of the commodity's per-kg charge rates."""
    return commodity.quantity_kg * commodity.rate_per_kg


def total_buy_rate(commodities: Iterable[CommodityLine]) -> Decimal:
    return q2(sum((commodity_buy_rate(c) for c in commodities), ZERO))


def total_volume_kg(commodities: Iterable[CommodityLine]) -> Decimal:
    return sum((c.quantity_kg for c in commodities), ZERO)


def compute_profit(buy_rate, client_quote) -> ProfitResult:
    """
    Profit is never clamped: a quote below cost yields a negative profit and a
    negative percentage. With no buy rate the percentage is undefined (None).
    """
    buy = d(buy_rate)
    quote = d(client_quote)
    profit = q2(quote - buy)
    if buy > ZERO:
        pct: Optional[Decimal] = q2(profit / buy * HUNDRED)
    else:
        pct = None
    return ProfitResult(profit=profit, profit_percentage=pct)


def price_quotation(commodities: List[CommodityLine], client_quote) -> QuotationPricing:
    quote = q2(parse_non_negative(client_quote, "client_quote"))
    buy = total_buy_rate(commodities)
    result = compute_profit(buy, quote)
    if result.profit < ZERO:
        logger.debug(f"Quotation priced at a loss: buy={buy} quote={quote}")
    return QuotationPricing(
        buy_rate=buy,
        client_quote=quote,
        profit=result.profit,
        profit_percentage=result.profit_percentage,
        total_volume_kg=total_volume_kg(commodities),
    )


def item_total(line: InvoiceLine) -> Decimal:
    """Sum of rate x quantity_kg over every charge on the line."""
    return q2(sum((c.rate * line.quantity_kg for c in line.charges), ZERO))


def with_totals(lines: Iterable[InvoiceLine]) -> List[InvoiceLine]:
    """Stamp each line's total; done once when the invoice is built."""
    out = []
    for line in lines:
        line.total = item_total(line)
        out.append(line)
    return out


def invoice_totals(lines: Iterable[InvoiceLine], vat_rate=DEFAULT_VAT_RATE) -> InvoiceTotals:
    rate = d(vat_rate)
    sub_total = q2(sum((d(line.total) for line in lines), ZERO))
    tva = q2(sub_total * rate)
    return InvoiceTotals(
        sub_total=sub_total,
        tva=tva,
        total_amount=sub_total + tva,
        vat_rate=rate,
    )


def default_due_date(issue_date: date, terms_days: int = DEFAULT_PAYMENT_TERMS_DAYS) -> date:
    return issue_date + timedelta(days=terms_days)


def is_overdue(status: str, due_date: Optional[date], today: date) -> bool:
    """Only unpaid invoices past their due date are overdue."""
    if status != "pending" or due_date is None:
        return False
    return today > due_date

"""
Quotation workflow: create, edit, approve/reject and line removal.

Every operation takes an explicit ``AuthContext``; callers never rely on the
request being reachable from here. Derived money fields (buy_rate, profit,
profit_percentage, total_volume_kg) are recomputed from the stored
commodities on every write, so they can never drift from the lines.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from django.db import transaction
from django.utils import timezone

from accounts import policy
from accounts.policy import AuthContext
from pricing.dataclasses import ChargeLine, CommodityLine
from pricing.services.calculations import price_quotation
from pricing.services.lines import remove_charge as drop_charge
from pricing.services.lines import remove_line

from .models import Quotation, QuotationCharge, QuotationCommodity

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'client', 'client_name', 'currency', 'client_quote', 'quote_sent_by',
    'follow_up_date', 'remarks', 'destination', 'door_delivery', 'freight_mode',
    'cargo_description', 'request_type', 'country_of_origin',
)


class QuotationWorkflowError(Exception):
    """A quotation operation is not allowed in the quotation's current state"""
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RejectionReasonRequired(QuotationWorkflowError):
    status_code = 400

    def __init__(self):
        super().__init__("A reason is required to reject a quotation.")


def _to_line(raw) -> CommodityLine:
    return raw if isinstance(raw, CommodityLine) else CommodityLine.from_dict(raw)


def _parse_commodities(raw: Optional[Iterable[Any]]) -> List[CommodityLine]:
    lines = [_to_line(c) for c in (raw or [])]
    # a quotation always carries at least one commodity row
    return lines or [CommodityLine()]


def commodity_lines(quotation: Quotation) -> List[CommodityLine]:
    """Load the stored commodities of a quotation as pricing lines."""
    lines = []
    for commodity in quotation.commodities.all().prefetch_related('charges'):
        charges = [
            ChargeLine(description=c.description, rate=c.rate, id=c.pk)
            for c in commodity.charges.all()
        ]
        lines.append(CommodityLine(
            name=commodity.name,
            quantity_kg=commodity.quantity_kg,
            charges=charges,
            id=commodity.pk,
        ))
    return lines


def _write_commodities(quotation: Quotation, lines: List[CommodityLine]) -> None:
    quotation.commodities.all().delete()
    for position, line in enumerate(lines):
        commodity = QuotationCommodity.objects.create(
            quotation=quotation,
            name=line.name,
            quantity_kg=line.quantity_kg,
            position=position,
        )
        line.id = commodity.pk
        for charge in line.charges:
            row = QuotationCharge.objects.create(
                commodity=commodity,
                description=charge.description,
                rate=charge.rate,
            )
            charge.id = row.pk


def _apply_pricing(quotation: Quotation, lines: List[CommodityLine], client_quote) -> None:
    pricing = price_quotation(lines, client_quote)
    quotation.buy_rate = pricing.buy_rate
    quotation.client_quote = pricing.client_quote
    quotation.profit = pricing.profit
    quotation.profit_percentage = pricing.profit_percentage
    quotation.total_volume_kg = pricing.total_volume_kg


def _assign_fields(quotation: Quotation, fields: Dict[str, Any]) -> None:
    for name in EDITABLE_FIELDS:
        if name in fields and name != 'client_quote':
            setattr(quotation, name, fields[name])
    # a new client brings its own name unless one was given explicitly
    client_changed = fields.get('client') is not None and not fields.get('client_name')
    if quotation.client_id and (client_changed or not quotation.client_name):
        quotation.client_name = quotation.client.company_name


def _require_editable(ctx: AuthContext, quotation: Quotation) -> None:
    ctx.require(policy.QUOTATION_EDIT)
    if not policy.can_edit_quotation(ctx, quotation):
        raise QuotationWorkflowError(
            f"Quotation {quotation.pk} is {quotation.status} and can no longer be edited."
        )


def create_quotation(ctx: AuthContext, fields: Dict[str, Any], commodities=None) -> Quotation:
    ctx.require(policy.QUOTATION_CREATE)
    lines = _parse_commodities(commodities)

    quotation = Quotation(status='pending', created_by_id=ctx.user_id)
    _assign_fields(quotation, fields)
    if not quotation.quote_sent_by:
        quotation.quote_sent_by = ctx.name
    # validates client_quote and every line before anything is written
    _apply_pricing(quotation, lines, fields.get('client_quote'))

    with transaction.atomic():
        quotation.save()
        _write_commodities(quotation, lines)

    logger.info(
        f"Quotation {quotation.pk} created by {ctx.name}: "
        f"buy={quotation.buy_rate} quote={quotation.client_quote} profit={quotation.profit}"
    )
    return quotation


def update_quotation(ctx: AuthContext, quotation: Quotation, fields: Dict[str, Any], commodities=None) -> Quotation:
    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)
        _require_editable(ctx, quotation)

        lines = _parse_commodities(commodities) if commodities is not None else commodity_lines(quotation)
        _assign_fields(quotation, fields)
        _apply_pricing(quotation, lines, fields.get('client_quote', quotation.client_quote))

        quotation.save()
        if commodities is not None:
            _write_commodities(quotation, lines)

    logger.info(f"Quotation {quotation.pk} updated by {ctx.name}")
    return quotation


def approve_quotation(ctx: AuthContext, quotation: Quotation) -> Quotation:
    ctx.require(policy.QUOTATION_APPROVE)
    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)
        if not policy.can_approve_quotation(ctx, quotation):
            raise QuotationWorkflowError(
                f"Only pending quotations can be approved; quotation {quotation.pk} is {quotation.status}."
            )
        quotation.status = 'won'
        quotation.approved_by_id = ctx.user_id
        quotation.approved_at = timezone.now()
        quotation.rejection_reason = ''
        quotation.save(update_fields=['status', 'approved_by', 'approved_at', 'rejection_reason', 'updated_at'])

    logger.info(f"Quotation {quotation.pk} approved by {ctx.name}")
    return quotation


def reject_quotation(ctx: AuthContext, quotation: Quotation, reason: Optional[str]) -> Quotation:
    ctx.require(policy.QUOTATION_APPROVE)
    reason = (reason or '').strip()
    if not reason:
        raise RejectionReasonRequired()

    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)
        if not policy.can_approve_quotation(ctx, quotation):
            raise QuotationWorkflowError(
                f"Only pending quotations can be rejected; quotation {quotation.pk} is {quotation.status}."
            )
        quotation.status = 'lost'
        quotation.approved_by_id = ctx.user_id
        quotation.approved_at = timezone.now()
        quotation.rejection_reason = reason
        quotation.save(update_fields=['status', 'approved_by', 'approved_at', 'rejection_reason', 'updated_at'])

    logger.info(f"Quotation {quotation.pk} rejected by {ctx.name}: {reason}")
    return quotation


def _reprice(quotation: Quotation, lines: List[CommodityLine]) -> None:
    _apply_pricing(quotation, lines, quotation.client_quote)
    quotation.save(update_fields=['buy_rate', 'client_quote', 'profit', 'profit_percentage',
                                  'total_volume_kg', 'updated_at'])


def remove_commodity(ctx: AuthContext, quotation: Quotation, commodity_id: int) -> bool:
    """Delete one commodity; the last remaining commodity is never removed."""
    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)
        _require_editable(ctx, quotation)

        lines = commodity_lines(quotation)
        kept = remove_line(lines, commodity_id)
        if len(kept) == len(lines):
            return False

        QuotationCommodity.objects.filter(quotation=quotation, pk=commodity_id).delete()
        _reprice(quotation, kept)

    logger.info(f"Commodity {commodity_id} removed from quotation {quotation.pk} by {ctx.name}")
    return True


def remove_charge(ctx: AuthContext, quotation: Quotation, commodity_id: int, charge_id: int) -> bool:
    """Delete one charge of a commodity; the commodity's last charge is kept."""
    with transaction.atomic():
        quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)
        _require_editable(ctx, quotation)

        lines = commodity_lines(quotation)
        line = next((c for c in lines if c.id == commodity_id), None)
        if line is None or not drop_charge(line, charge_id):
            return False

        QuotationCharge.objects.filter(commodity_id=commodity_id, pk=charge_id).delete()
        _reprice(quotation, lines)

    logger.info(f"Charge {charge_id} removed from commodity {commodity_id} by {ctx.name}")
    return True

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from .services.utils import ZERO, parse_non_negative, q2

LineId = Optional[Union[int, str]]


@dataclass
class ChargeLine:
    description: str = ""
    rate: Decimal = ZERO
    id: LineId = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChargeLine":
        return cls(
            description=(data.get("description") or "").strip(),
            rate=parse_non_negative(data.get("rate"), "rate"),
            id=data.get("id"),
        )


def _charges_from(raw) -> List[ChargeLine]:
    return [c if isinstance(c, ChargeLine) else ChargeLine.from_dict(c) for c in (raw or [])]


@dataclass
class CommodityLine:
    """A cargo line on a quotation: weight in kg and one or more per-kg charges."""
    name: str = ""
    quantity_kg: Decimal = ZERO
    charges: List[ChargeLine] = field(default_factory=list)
    id: LineId = None

    def __post_init__(self):
        # at least one charge per commodity
        if not self.charges:
            self.charges = [ChargeLine()]

    @property
    def rate_per_kg(self) -> Decimal:
        return sum((c.rate for c in self.charges), ZERO)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommodityLine":
        return cls(
            name=(data.get("name") or "").strip(),
            quantity_kg=parse_non_negative(data.get("quantity_kg"), "quantity_kg"),
            charges=_charges_from(data.get("charges")),
            id=data.get("id"),
        )


@dataclass
class InvoiceLine:
    commodity: str = ""
    quantity_kg: Decimal = ZERO
    charges: List[ChargeLine] = field(default_factory=list)
    description: str = ""
    total: Decimal = ZERO
    id: LineId = None

    def __post_init__(self):
        if not self.charges:
            self.charges = [ChargeLine()]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceLine":
        return cls(
            commodity=(data.get("commodity") or "").strip(),
            quantity_kg=parse_non_negative(data.get("quantity_kg"), "quantity_kg"),
            charges=_charges_from(data.get("charges")),
            description=(data.get("description") or "").strip(),
            id=data.get("id"),
        )


@dataclass
class ProfitResult:
    profit: Decimal
    # None when there is no buy rate to measure against
    profit_percentage: Optional[Decimal]

    @property
    def percentage_display(self) -> Optional[str]:
        if self.profit_percentage is None:
            return None
        return f"{self.profit_percentage:.2f}%"


@dataclass
class QuotationPricing:
    buy_rate: Decimal
    client_quote: Decimal
    profit: Decimal
    profit_percentage: Optional[Decimal]
    total_volume_kg: Decimal


@dataclass
class InvoiceTotals:
    sub_total: Decimal
    tva: Decimal
    total_amount: Decimal
    vat_rate: Decimal

    def as_dict(self) -> Dict[str, str]:
        return {
            "sub_total": str(q2(self.sub_total)),
            "tva": str(q2(self.tva)),
            "total_amount": str(q2(self.total_amount)),
            "vat_rate": str(self.vat_rate),
        }

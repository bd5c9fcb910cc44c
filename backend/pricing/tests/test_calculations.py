"""
Unit tests for quotation buy-rate/profit arithmetic and invoice totals.
"""

from datetime import date
from decimal import Decimal

import pytest

from ..dataclasses import ChargeLine, CommodityLine, InvoiceLine
from ..exceptions import PricingValidationError
from ..services.calculations import (
    commodity_buy_rate,
    compute_profit,
    default_due_date,
    invoice_totals,
    is_overdue,
    item_total,
    price_quotation,
    total_buy_rate,
    with_totals,
)


def _commodity(qty, *rates, name="General cargo"):
    return CommodityLine(
        name=name,
        quantity_kg=Decimal(str(qty)),
        charges=[ChargeLine(description=f"c{i}", rate=Decimal(str(r))) for i, r in enumerate(rates)],
    )


class TestBuyRate:
    """Buy rate aggregation over commodities and their charges"""

    def test_single_commodity_multiple_charges(self):
        c = _commodity(100, 2, "0.5")
        assert commodity_buy_rate(c) == Decimal("250")

    def test_sums_across_commodities(self):
        commodities = [_commodity(100, 2, "0.5"), _commodity(10, "1.25")]
        assert total_buy_rate(commodities) == Decimal("262.50")

    def test_empty_list_is_zero(self):
        assert total_buy_rate([]) == Decimal("0.00")

    def test_zero_quantity_or_rate_gives_zero(self):
        assert commodity_buy_rate(_commodity(0, 5)) == Decimal("0")
        assert commodity_buy_rate(_commodity(40, 0)) == Decimal("0")

    def test_empty_charges_normalized_to_single_zero_charge(self):
        c = CommodityLine(name="Loose", quantity_kg=Decimal("12"), charges=[])
        assert len(c.charges) == 1
        assert c.charges[0].rate == Decimal("0")
        assert commodity_buy_rate(c) == Decimal("0")

    def test_recomputing_is_idempotent(self):
        commodities = [_commodity("33.3", "1.11", "2.22"), _commodity(7, "0.333")]
        assert total_buy_rate(commodities) == total_buy_rate(commodities)


class TestInputValidation:
    """Non-numeric input is rejected instead of silently becoming zero"""

    def test_non_numeric_rate_rejected(self):
        with pytest.raises(PricingValidationError) as exc:
            CommodityLine.from_dict({"name": "x", "quantity_kg": 10, "charges": [{"rate": "abc"}]})
        assert exc.value.field == "rate"

    def test_non_numeric_quantity_rejected(self):
        with pytest.raises(PricingValidationError) as exc:
            CommodityLine.from_dict({"name": "x", "quantity_kg": "ten", "charges": [{"rate": 1}]})
        assert exc.value.field == "quantity_kg"

    def test_nan_and_negative_rejected(self):
        with pytest.raises(PricingValidationError):
            CommodityLine.from_dict({"quantity_kg": "NaN"})
        with pytest.raises(PricingValidationError):
            CommodityLine.from_dict({"quantity_kg": -1})

    def test_blank_cells_count_as_zero(self):
        c = CommodityLine.from_dict({"name": "x", "quantity_kg": "", "charges": [{"rate": None}]})
        assert c.quantity_kg == Decimal("0")
        assert c.charges[0].rate == Decimal("0")

    def test_from_dict_with_no_charges_key(self):
        c = CommodityLine.from_dict({"name": "x", "quantity_kg": "5"})
        assert len(c.charges) == 1


class TestProfit:
    """Profit and profit percentage derivation"""

    def test_profit_and_percentage(self):
        result = compute_profit(Decimal("250"), Decimal("400"))
        assert result.profit == Decimal("150.00")
        assert result.profit_percentage == Decimal("60.00")
        assert result.percentage_display == "60.00%"

    def test_loss_gives_negative_values(self):
        result = compute_profit(Decimal("400"), Decimal("300"))
        assert result.profit == Decimal("-100.00")
        assert result.profit_percentage == Decimal("-25.00")

    def test_zero_buy_rate_percentage_is_none(self):
        result = compute_profit(Decimal("0"), Decimal("100"))
        assert result.profit == Decimal("100.00")
        assert result.profit_percentage is None
        assert result.percentage_display is None

    def test_price_quotation_rolls_everything_up(self):
        pricing = price_quotation([_commodity(100, 2, "0.5")], "400")
        assert pricing.buy_rate == Decimal("250.00")
        assert pricing.client_quote == Decimal("400.00")
        assert pricing.profit == Decimal("150.00")
        assert pricing.profit_percentage == Decimal("60.00")
        assert pricing.total_volume_kg == Decimal("100")

    def test_price_quotation_rejects_bad_client_quote(self):
        with pytest.raises(PricingValidationError):
            price_quotation([_commodity(1, 1)], "lots")


class TestInvoiceTotals:
    """Invoice line totals, VAT and grand total"""

    def test_item_total_single_charge(self):
        line = InvoiceLine(commodity="Parts", quantity_kg=Decimal("20"), charges=[ChargeLine(rate=Decimal("3"))])
        assert item_total(line) == Decimal("60.00")

    def test_item_total_multiple_charges(self):
        line = InvoiceLine(
            commodity="Parts",
            quantity_kg=Decimal("20"),
            charges=[ChargeLine(rate=Decimal("3")), ChargeLine(rate=Decimal("0.75"))],
        )
        assert item_total(line) == Decimal("75.00")

    def test_vat_and_total(self):
        lines = [InvoiceLine(commodity="a", total=Decimal("600")), InvoiceLine(commodity="b", total=Decimal("400"))]
        totals = invoice_totals(lines, Decimal("0.18"))
        assert totals.sub_total == Decimal("1000.00")
        assert totals.tva == Decimal("180.00")
        assert totals.total_amount == Decimal("1180.00")

    def test_vat_rounded_to_cents(self):
        totals = invoice_totals([InvoiceLine(total=Decimal("10.03"))], Decimal("0.18"))
        # 10.03 * 0.18 = 1.8054
        assert totals.tva == Decimal("1.81")
        assert totals.total_amount == Decimal("11.84")

    def test_configurable_rate(self):
        totals = invoice_totals([InvoiceLine(total=Decimal("100"))], Decimal("0.10"))
        assert totals.tva == Decimal("10.00")
        assert totals.vat_rate == Decimal("0.10")

    def test_with_totals_stamps_each_line(self):
        lines = with_totals([
            InvoiceLine(commodity="a", quantity_kg=Decimal("10"), charges=[ChargeLine(rate=Decimal("2"))]),
            InvoiceLine(commodity="b", quantity_kg=Decimal("0"), charges=[ChargeLine(rate=Decimal("9"))]),
        ])
        assert [line.total for line in lines] == [Decimal("20.00"), Decimal("0.00")]
        assert invoice_totals(lines).total_amount == Decimal("23.60")


class TestDates:

    def test_default_due_date_is_thirty_days(self):
        assert default_due_date(date(2025, 1, 1)) == date(2025, 1, 31)

    def test_overdue_is_derived(self):
        due = date(2025, 1, 31)
        assert is_overdue("pending", due, date(2025, 2, 1)) is True
        assert is_overdue("pending", due, date(2025, 1, 31)) is False
        assert is_overdue("paid", due, date(2025, 3, 1)) is False
        assert is_overdue("pending", None, date(2025, 3, 1)) is False

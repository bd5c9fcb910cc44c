from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional

import requests
from bs4 import BeautifulSoup
from django.conf import settings

from pricing.services.utils import d

from . import RateRow

logger = logging.getLogger(__name__)

HOME_CCY = "RWF"
EIGHTPLACES = Decimal("0.00000001")


class BnrHtmlProvider:
    """
    Scrapes the National Bank of Rwanda exchange-rate page. BNR publishes RWF
    per one unit of foreign currency as Buying / Average / Selling.
    For requested pairs:
      - FCY:RWF -> BUY = Buying, MID = Average, SELL = Selling (no inversion)
      - RWF:FCY -> 1 / each of the above (invert)
    """

    def __init__(self, url: Optional[str] = None, timeout: int = 15) -> None:
        self.url = url or getattr(settings, "BNR_FX_URL", "https://www.bnr.rw/currency/exchange-rate/")
        self.timeout = timeout

    def _fetch_html(self) -> str:
        headers = {
            "User-Agent": "AWCBackofficeFX/1.0",
            "Accept": "text/html,application/xhtml+xml",
        }
        resp = requests.get(self.url, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.text

    @staticmethod
    def _round8(x: Decimal) -> Decimal:
        return d(x).quantize(EIGHTPLACES, rounding=ROUND_HALF_UP)

    @staticmethod
    def _number(cell) -> Optional[Decimal]:
        txt = cell.get_text(strip=True).replace(",", "")
        if not txt:
            return None
        try:
            val = Decimal(txt)
        except InvalidOperation:
            return None
        return val if val.is_finite() and val > 0 else None

    @classmethod
    def _parse_rates(cls, html: str) -> Dict[str, Dict[str, Decimal]]:
        soup = BeautifulSoup(html, "html.parser")
        table = None
        columns: Dict[str, int] = {}
        for t in soup.find_all("table"):
            headers = [th.get_text(strip=True).lower() for th in t.find_all("th")]
            if any("buy" in h for h in headers) and any("sell" in h for h in headers):
                table = t
                for idx, h in enumerate(headers):
                    if "buy" in h:
                        columns.setdefault("BUY", idx)
                    elif "sell" in h:
                        columns.setdefault("SELL", idx)
                    elif "average" in h or "mid" in h:
                        columns.setdefault("MID", idx)
                break
        if table is None:
            raise RuntimeError("BNR FX: table not found")

        rates: Dict[str, Dict[str, Decimal]] = {}
        for tr in table.find_all("tr"):
            cells = tr.find_all(["td", "th"])
            if len(cells) <= max(columns.values()):
                continue
            code = None
            # first 3-letter alphabetic cell is the currency code
            for cell in cells[:2]:
                txt = cell.get_text(strip=True).upper()
                if len(txt) == 3 and txt.isalpha():
                    code = txt
                    break
            if code is None:
                continue
            row = {}
            for rate_type, idx in columns.items():
                val = cls._number(cells[idx])
                if val is not None:
                    row[rate_type] = val
            if row:
                rates[code] = row
        return rates

    def fetch(self, pairs: List[str]) -> List[RateRow]:
        table = self._parse_rates(self._fetch_html())
        as_of = datetime.now(timezone.utc)
        out: List[RateRow] = []
        for pair in pairs:
            if ":" not in pair:
                continue
            base, quote = [p.strip().upper() for p in pair.split(":", 1)]
            if quote == HOME_CCY and base in table:
                for rate_type, val in table[base].items():
                    out.append(RateRow(as_of, base, quote, self._round8(val), rate_type, "bnr_html"))
            elif base == HOME_CCY and quote in table:
                # Invert
                for rate_type, val in table[quote].items():
                    out.append(RateRow(as_of, base, quote, self._round8(Decimal(1) / val), rate_type, "bnr_html"))
            else:
                logger.warning(f"BNR FX: no published rate for {base}:{quote}")
        return out

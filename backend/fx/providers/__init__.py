from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass
class RateRow:
    as_of_ts: datetime
    base_ccy: str
    quote_ccy: str
    rate: Decimal
    rate_type: str  # 'BUY', 'SELL' or 'MID'
    source: str


def load(name: Optional[str]):
    """
    Lazy-load an FX provider by name.
    - 'bnr', 'bnr_html' -> BnrHtmlProvider
    - 'env', None -> EnvProvider (from fx.services)
    """
    key = (name or "env").strip().lower()
    if key in {"bnr", "bnr_html"}:
        from .bnr_html import BnrHtmlProvider  # local import to avoid circulars
        return BnrHtmlProvider()
    if key in {"env", "env_provider"}:
        from fx.services import EnvProvider
        return EnvProvider()
    raise ValueError(f"Unknown FX provider '{name}'")

from __future__ import annotations

import logging
from typing import List, Tuple

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils.timezone import now

from fx.models import CurrencyRate
from fx.providers import load as load_provider
from fx.services import upsert_rate
from pricing.services.utils import d

logger = logging.getLogger(__name__)


def parse_pairs(arg: str) -> List[Tuple[str, str]]:
    pairs: List[Tuple[str, str]] = []
    for part in (arg or "").split(","):
        part = part.strip()
        if not part:
            continue
        if ":" not in part:
            raise CommandError(f"Invalid pair '{part}'. Use BASE:QUOTE, e.g., USD:RWF")
        b, q = part.split(":", 1)
        pairs.append((b.strip().upper(), q.strip().upper()))
    return pairs


def latest_prev(base: str, quote: str, rate_type: str = None):
    qs = CurrencyRate.objects.filter(base_ccy=base, quote_ccy=quote)
    if rate_type:
        qs = qs.filter(rate_type=rate_type)
    return qs.order_by('-as_of_ts').first()


def warn_if_stale(base: str, quote: str, stale_hours: float):
    latest = latest_prev(base, quote)
    if not latest:
        return None
    age_hours = (now() - latest.as_of_ts).total_seconds() / 3600.0
    if age_hours > stale_hours:
        logger.warning(f"FX staleness: {base}->{quote} latest {age_hours:.1f}h old")
    return age_hours


def warn_if_anomalous(base: str, quote: str, rate_type: str, prev_rate, new_rate, threshold: float) -> bool:
    if prev_rate is None or d(prev_rate) <= 0:
        return False
    pct = float(abs(d(new_rate) - d(prev_rate)) / d(prev_rate))
    if pct > threshold:
        logger.warning(
            f"FX anomaly: {base}->{quote} {rate_type} changed by {pct * 100.0:.2f}% (old={prev_rate} new={new_rate})"
        )
        return True
    return False


class Command(BaseCommand):
    help = "Fetch FX rates from the configured provider (BNR by default) and store them."

    def add_arguments(self, parser):
        parser.add_argument("--pairs", type=str, help="Comma-separated pairs BASE:QUOTE, e.g., USD:RWF,RWF:USD")
        parser.add_argument("--provider", type=str, default="bnr_html", help="FX provider to use (bnr_html|bnr|env)")

    def handle(self, *args, **options):
        pairs_arg = options.get("pairs")
        if not pairs_arg:
            raise CommandError("--pairs is required (e.g., USD:RWF,RWF:USD)")
        pairs = parse_pairs(pairs_arg)
        provider_name: str = (options["provider"] or "bnr_html").strip().lower()

        stale_hours = float(getattr(settings, "FX_STALE_HOURS", 24))
        anomaly_pct = float(getattr(settings, "FX_ANOMALY_PCT", 0.05))

        for (base, quote) in pairs:
            warn_if_stale(base, quote, stale_hours)

        try:
            provider = load_provider(provider_name)
        except ValueError as e:
            raise CommandError(str(e))

        wanted = [f"{b}:{q}" for (b, q) in pairs]
        try:
            rows = provider.fetch(wanted)
        except (RuntimeError, OSError) as e:
            # requests' exceptions derive from OSError
            if provider_name == "env":
                raise CommandError(f"FX provider failed: {e}")
            logger.warning(f"{provider_name} provider failed, falling back to ENV: {e}")
            rows = load_provider("env").fetch(wanted)

        if not rows:
            raise CommandError("No FX rates fetched")

        for r in rows:
            prev = latest_prev(r.base_ccy, r.quote_ccy, r.rate_type)
            warn_if_anomalous(r.base_ccy, r.quote_ccy, r.rate_type, prev.rate if prev else None, r.rate, anomaly_pct)
            upsert_rate(r.as_of_ts, r.base_ccy, r.quote_ccy, r.rate, r.rate_type, r.source)
            self.stdout.write(self.style.SUCCESS(
                f"Saved {r.base_ccy}->{r.quote_ccy} {r.rate_type} {r.rate} @ {r.as_of_ts.isoformat()} [{r.source}]"
            ))

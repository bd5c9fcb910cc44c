from __future__ import annotations

import logging
from typing import List, Sequence, TypeVar, Union

from ..dataclasses import ChargeLine, CommodityLine, InvoiceLine, LineId
from .utils import ZERO

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_LINES = 1


def remove_line(lines: Sequence[T], line_id: LineId) -> List[T]:
    """
    Return ``lines`` without the entry whose id is ``line_id``.

    Removing the last remaining entry is a no-op: the list never drops below
    one line. Unknown ids also leave the list unchanged.
    """
    current = list(lines)
    if len(current) <= MIN_LINES:
        logger.warning(f"Refusing to remove line {line_id}: at least {MIN_LINES} line is required")
        return current
    for index, line in enumerate(current):
        if getattr(line, "id", None) == line_id:
            # only the first match goes, even when ids repeat
            del current[index]
            return current
    logger.debug(f"Line {line_id} not found; nothing removed")
    return current


def add_charge(line: Union[CommodityLine, InvoiceLine], description: str = "", rate=ZERO) -> ChargeLine:
    charge = ChargeLine(description=description, rate=rate)
    line.charges.append(charge)
    return charge


def remove_charge(line: Union[CommodityLine, InvoiceLine], charge_id: LineId) -> bool:
    """Drop a charge from a line; returns False when nothing was removed."""
    before = len(line.charges)
    line.charges = remove_line(line.charges, charge_id)
    return len(line.charges) < before

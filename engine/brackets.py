import math
import logging
from typing import Any, Iterable, List, Mapping, Optional

from engine.constants import FALLBACK_BRACKETS
from engine.models import BracketRow

logger = logging.getLogger(__name__)

RATE_FIELDS = ('rate', 'tax_rate')
CAP_FIELDS = ('cap', 'threshold', 'max')


def _to_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _first_present(raw: Mapping[str, Any], fields) -> Optional[float]:
    for name in fields:
        number = _to_number(raw.get(name))
        if number is not None:
            return number
    return None


def normalize_row(raw) -> BracketRow:
    """
    Convert one bracket row from the data source into a BracketRow.

    Accepts a mapping using any of the known field names for the rate
    (rate, tax_rate) and the cap (cap, threshold, max), or a (rate, cap) pair.
    A rate that cannot be read counts as 0 and a cap that cannot be read
    counts as open-ended.
    """
    if isinstance(raw, Mapping):
        rate = _first_present(raw, RATE_FIELDS)
        cap = _first_present(raw, CAP_FIELDS)
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        rate, cap = _to_number(raw[0]), _to_number(raw[1])
    else:
        logger.warning("Unreadable bracket row %r, treating as 0%% open-ended", raw)
        rate, cap = None, None

    if rate is None:
        rate = 0.0
    elif rate > 1:
        # Handle percentage input (e.g. 12 for 12%)
        rate = rate / 100
    if cap is None:
        cap = math.inf

    return BracketRow(rate=rate, cap=cap)


def normalize_table(rows: Iterable, open_top=True) -> List[BracketRow]:
    """
    Normalize rows and order them by cap. With open_top the top row is made
    open-ended so it covers all income; without it the caps are kept as given.
    """
    table = sorted((normalize_row(r) for r in rows), key=lambda row: row.cap)
    if open_top and table and not table[-1].is_open_ended:
        top = table[-1]
        logger.debug("Top bracket capped at %s, extending it to cover all income", top.cap)
        table[-1] = BracketRow(rate=top.rate, cap=math.inf)
    return table


def extract_rows(tax_data, filing_status: str) -> list:
    """Pull the raw bracket rows for a filing status out of a fetched document."""
    if not isinstance(tax_data, Mapping):
        return []
    entry = tax_data.get(filing_status)
    if isinstance(entry, Mapping):
        entry = entry.get('brackets')
    if isinstance(entry, (list, tuple)):
        return list(entry)
    return []


def fallback_brackets(filing_status: str) -> List[BracketRow]:
    """Built-in table; statuses without their own table use the single table."""
    raw = FALLBACK_BRACKETS.get(filing_status, FALLBACK_BRACKETS['single'])
    return [BracketRow(rate=rate, cap=cap) for rate, cap in raw]


def resolve_brackets(tax_data, filing_status: str, open_top=True) -> List[BracketRow]:
    """
    Bracket table for a filing status.

    Uses the fetched document when it has rows for the status, otherwise the
    built-in fallback. Never raises. Pass open_top=False to keep a finite top
    cap from the document, e.g. for deriving snap points.
    """
    rows = extract_rows(tax_data, filing_status)
    if rows:
        table = normalize_table(rows, open_top=open_top)
        if table:
            return table
    return fallback_brackets(filing_status)

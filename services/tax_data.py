"""
Year-specific bracket tables fetched from the published JSON documents,
and the cache that tracks each year's fetch.
"""
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

import requests

from engine.constants import TAX_DATA_URLS

logger = logging.getLogger(__name__)

FALLBACK_ADVISORY = "Could not load tax tables. Using fallback data."


class TaxDataUnavailable(Exception):
    """The bracket document for a year could not be retrieved."""


class FetchStatus(str, Enum):
    NOT_REQUESTED = 'not_requested'
    PENDING = 'pending'
    READY = 'ready'
    FAILED = 'failed'


@dataclass(frozen=True)
class TaxDataState:
    year: int
    status: FetchStatus = FetchStatus.NOT_REQUESTED
    table: Optional[dict] = None
    reason: Optional[str] = None

    @property
    def advisory(self) -> Optional[str]:
        if self.status == FetchStatus.FAILED:
            return FALLBACK_ADVISORY
        return None

    @property
    def source_label(self) -> str:
        if self.status == FetchStatus.PENDING:
            return "Fetching..."
        if self.status == FetchStatus.FAILED:
            return "Fallback Data (Fetch Failed)"
        if self.status == FetchStatus.READY:
            return "Live JSON Loaded"
        return "Built-in Tables"

    def to_dict(self, include_table=False):
        data = {
            'year': self.year,
            'status': self.status.value,
            'source': self.source_label,
            'advisory': self.advisory,
            'reason': self.reason,
        }
        if include_table:
            data['table'] = self.table
        return data


def tax_data_url(year: int, base_url: Optional[str] = None) -> str:
    if base_url:
        return f"{base_url.rstrip('/')}/irs.tax-rates.{year}.json"
    if year not in TAX_DATA_URLS:
        raise TaxDataUnavailable(f"No tax data source for {year}")
    return TAX_DATA_URLS[year]


def fetch_tax_data(year: int, timeout: float = 10.0, base_url: Optional[str] = None, session=None) -> dict:
    """
    Download the bracket document for a year.

    Raises TaxDataUnavailable on network errors, non-success status codes
    and bodies that are not a JSON object.
    """
    url = tax_data_url(year, base_url)
    http = session or requests

    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        raise TaxDataUnavailable(f"Failed to fetch tax data for {year}: {e}") from e
    except ValueError as e:
        raise TaxDataUnavailable(f"Tax data for {year} is not valid JSON") from e

    if not isinstance(data, dict):
        raise TaxDataUnavailable(f"Tax data for {year} has unexpected shape: {type(data).__name__}")
    return data


class TaxDataCache:
    """
    Fetch state per tax year.

    Each year has its own slot, so a response that arrives after the user has
    moved on to another year only ever lands in its own year's slot. The
    selected year decides what current() reports.
    """

    def __init__(self, fetcher: Callable[[int], dict] = None):
        self._fetcher = fetcher or fetch_tax_data
        self._states: Dict[int, TaxDataState] = {}
        self._generations: Dict[int, int] = {}
        self._selected: Optional[int] = None
        self._lock = threading.Lock()

    def state(self, year: int) -> TaxDataState:
        with self._lock:
            return self._states.get(year, TaxDataState(year=year))

    def current(self) -> Optional[TaxDataState]:
        """State of the selected year, None before any year is selected."""
        with self._lock:
            if self._selected is None:
                return None
            return self._states.get(self._selected, TaxDataState(year=self._selected))

    def select(self, year: int) -> TaxDataState:
        with self._lock:
            self._selected = year
            return self._states.get(year, TaxDataState(year=year))

    def request(self, year: int) -> bool:
        """
        Mark the year as pending if it was never requested.
        Returns True when the caller should go on to load() it.
        """
        with self._lock:
            state = self._states.get(year, TaxDataState(year=year))
            if state.status != FetchStatus.NOT_REQUESTED:
                return False
            self._begin(year)
            return True

    def load(self, year: int) -> TaxDataState:
        """Fetch the year's tables now and store the outcome in its slot."""
        with self._lock:
            state = self._states.get(year)
            if state is not None and state.status == FetchStatus.PENDING:
                generation = self._generations[year]
            else:
                generation = self._begin(year)

        try:
            table = self._fetcher(year)
            outcome = TaxDataState(year=year, status=FetchStatus.READY, table=table)
            logger.info("Loaded tax tables for %s", year)
        except TaxDataUnavailable as e:
            logger.warning("%s", e)
            outcome = TaxDataState(year=year, status=FetchStatus.FAILED, reason=str(e))
        except Exception as e:
            logger.exception("Unexpected error loading tax tables for %s", year)
            outcome = TaxDataState(year=year, status=FetchStatus.FAILED, reason=str(e) or type(e).__name__)

        with self._lock:
            # A newer load for the same year has started; its result wins.
            if self._generations.get(year) != generation:
                logger.debug("Discarding superseded tax data response for %s", year)
                return self._states[year]
            self._states[year] = outcome
            return outcome

    def refresh(self, year: int) -> TaxDataState:
        with self._lock:
            self._begin(year)
        return self.load(year)

    def _begin(self, year: int) -> int:
        generation = self._generations.get(year, 0) + 1
        self._generations[year] = generation
        previous = self._states.get(year)
        # Keep serving a previously loaded table while a refresh is in flight
        table = previous.table if previous is not None else None
        self._states[year] = TaxDataState(year=year, status=FetchStatus.PENDING, table=table)
        return generation

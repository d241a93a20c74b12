import logging
from functools import lru_cache, partial

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from fastapi.responses import StreamingResponse

from config import get_settings
from schemas.estimate import EstimateParams, SnapParams
from engine.brackets import fallback_brackets
from engine.constants import (
    FILING_STATUSES, SUPPORTED_YEARS, STANDARD_DEDUCTIONS, SENIOR_ADDON,
    CAP_GAINS_BRACKETS, FALLBACK_BRACKETS, SNAP_RADIUS, MAX_INCOME_STREAMS
)
from services.estimate_service import run_estimate_service, run_snap_service, export_breakdown_csv
from services.tax_data import TaxDataCache, fetch_tax_data

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache()
def get_tax_data_cache() -> TaxDataCache:
    """Process-wide cache of fetched bracket tables"""
    settings = get_settings()
    fetcher = partial(
        fetch_tax_data,
        timeout=settings.fetch_timeout,
        base_url=settings.tax_data_base_url
    )
    return TaxDataCache(fetcher=fetcher)


def _json_cap(cap):
    return None if cap == float('inf') else cap


@router.get("/constants")
async def get_constants():
    """Built-in tables the estimator falls back on"""
    return {
        'years': list(SUPPORTED_YEARS),
        'filing_statuses': list(FILING_STATUSES),
        'standard_deductions': STANDARD_DEDUCTIONS,
        'senior_addon': SENIOR_ADDON,
        'cap_gains_brackets': {year: {s: list(t) for s, t in by_status.items()}
                               for year, by_status in CAP_GAINS_BRACKETS.items()},
        'fallback_brackets': {status: [{'rate': row.rate, 'cap': _json_cap(row.cap)}
                                       for row in fallback_brackets(status)]
                              for status in FALLBACK_BRACKETS},
        'snap_radius': SNAP_RADIUS,
        'max_income_streams': MAX_INCOME_STREAMS
    }


@router.get("/tax-data/{year}")
def get_tax_data(year: int, cache: TaxDataCache = Depends(get_tax_data_cache)):
    """
    Select a year and report its fetch state, loading it if needed.
    """
    if year not in SUPPORTED_YEARS and not get_settings().tax_data_base_url:
        raise HTTPException(status_code=404, detail=f"No tax data source for {year}")

    state = cache.select(year)
    if cache.request(year):
        state = cache.load(year)
    return state.to_dict(include_table=True)


@router.post("/tax-data/{year}/refresh")
def refresh_tax_data(year: int, cache: TaxDataCache = Depends(get_tax_data_cache)):
    """Refetch a year's tables"""
    if year not in SUPPORTED_YEARS and not get_settings().tax_data_base_url:
        raise HTTPException(status_code=404, detail=f"No tax data source for {year}")

    return cache.refresh(year).to_dict()


@router.post("/estimate")
def estimate_endpoint(
    params: EstimateParams,
    background_tasks: BackgroundTasks,
    cache: TaxDataCache = Depends(get_tax_data_cache)
):
    """
    Run the tax estimate. Uses the built-in tables while the year's live
    tables are still loading.
    """
    try:
        return run_estimate_service(params, cache, background_tasks)
    except Exception as e:
        logger.exception("Estimate failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/snap")
def snap_endpoint(
    params: SnapParams,
    background_tasks: BackgroundTasks,
    cache: TaxDataCache = Depends(get_tax_data_cache)
):
    """
    Snap a regular income slider value to a bracket boundary.
    """
    try:
        return run_snap_service(params, cache, background_tasks)
    except Exception as e:
        logger.exception("Snap failed")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/export-breakdown")
def export_breakdown(params: EstimateParams, cache: TaxDataCache = Depends(get_tax_data_cache)):
    """Export the tax breakdown as a CSV file"""
    try:
        content = export_breakdown_csv(params, cache)
    except Exception as e:
        logger.exception("Export failed")
        raise HTTPException(status_code=500, detail=str(e))

    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=tax_breakdown_{params.year}.csv"}
    )

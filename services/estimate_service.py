import io
import logging

import pandas as pd

from schemas.estimate import EstimateParams, SnapParams
from engine.brackets import resolve_brackets
from engine.charts import bar_chart, flow_diagram
from engine.core import calculate_taxes
from engine.models import TaxInputs, TaxResult
from engine.snap import derive_snap_points, snap_value
from services.tax_data import TaxDataCache

logger = logging.getLogger(__name__)

BREAKDOWN_COLUMNS = ['type', 'label', 'rate', 'income', 'tax']


def map_to_tax_inputs(params: EstimateParams) -> TaxInputs:
    """Convert Pydantic model to engine inputs"""
    return TaxInputs(
        year=params.year,
        filing_status=params.filing_status,
        is_senior=params.is_senior,
        regular_income=params.regular_income,
        cap_gain_income=params.cap_gain_income,
        itemized_deduction=params.itemized_deduction,
        use_standard=params.use_standard
    )


def select_tax_data(params: EstimateParams, cache: TaxDataCache, background_tasks=None):
    """
    Point the cache at the requested year and return its state.

    A year that was never requested starts loading: in the background when
    background_tasks is given (the estimate uses the built-in tables until it
    lands), otherwise right away.
    """
    cache.select(params.year)
    if cache.request(params.year):
        if background_tasks is not None:
            background_tasks.add_task(cache.load, params.year)
        else:
            cache.load(params.year)

    state = cache.current()
    if state is None or state.year != params.year:
        # Another request moved the selection meanwhile
        state = cache.state(params.year)
    return state


def snap_points_for(tax_data, filing_status, final_deduction):
    # Finite caps as published, before the top row is opened up for taxing
    brackets = resolve_brackets(tax_data, filing_status, open_top=False)
    return derive_snap_points(brackets, final_deduction)


def run_estimate_service(params: EstimateParams, cache: TaxDataCache, background_tasks=None):
    """
    Service to run the estimate and return everything the UI renders.
    """
    state = select_tax_data(params, cache, background_tasks)
    tax_data = state.table

    result = calculate_taxes(map_to_tax_inputs(params), tax_data)

    # Snap points come from the same table the tax was computed with
    snap_points = snap_points_for(tax_data, params.filing_status, result.final_deduction)

    return {
        'success': True,
        'inputs': params.model_dump(),
        'result': result.to_dict(),
        'snap_points': snap_points,
        'charts': {
            'bar': bar_chart(result.tax_breakdown, result.total_gross_income),
            'flow': flow_diagram(result)
        },
        'data_source': state.to_dict()
    }


def run_snap_service(params: SnapParams, cache: TaxDataCache, background_tasks=None):
    """
    Service to snap a dragged regular income value to the nearest bracket
    boundary in gross income terms.
    """
    state = select_tax_data(params, cache, background_tasks)
    result = calculate_taxes(map_to_tax_inputs(params), state.table)

    snap_points = snap_points_for(state.table, params.filing_status, result.final_deduction)

    snapped = snap_value(params.value, snap_points) if params.snap_enabled else params.value
    return {
        'value': params.value,
        'snapped': snapped,
        'snap_points': snap_points
    }


def breakdown_frame(result: TaxResult) -> pd.DataFrame:
    records = [line.to_dict() for line in result.tax_breakdown]
    df = pd.DataFrame(records, columns=BREAKDOWN_COLUMNS)

    totals = pd.DataFrame([{
        'type': 'Total',
        'label': 'Total',
        'rate': result.effective_rate / 100,
        'income': result.total_gross_income,
        'tax': result.total_tax
    }])
    return pd.concat([df, totals], ignore_index=True) if not df.empty else totals


def export_breakdown_csv(params: EstimateParams, cache: TaxDataCache) -> str:
    """Render the estimate's breakdown as CSV text"""
    state = select_tax_data(params, cache)
    result = calculate_taxes(map_to_tax_inputs(params), state.table)

    output = io.StringIO()
    breakdown_frame(result).to_csv(output, index=False)
    logger.debug("Exported %d breakdown lines for %s", len(result.tax_breakdown), params.year)
    return output.getvalue()

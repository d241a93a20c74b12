from engine.constants import CHART_MAX_RATE
from engine.models import TaxResult

# Node ids for the income flow diagram
GROSS = 'gross_income'
TAXABLE_REGULAR = 'taxable_regular'
TAXABLE_CAP_GAINS = 'taxable_cap_gains'
DEDUCTION = 'deduction'
REGULAR_TAX = 'regular_tax'
CAP_GAINS_TAX = 'cap_gains_tax'
NET_INCOME = 'net_income'

NODE_LABELS = {
    GROSS: 'Total Income',
    TAXABLE_REGULAR: 'Taxable Regular',
    TAXABLE_CAP_GAINS: 'Taxable Cap Gains',
    DEDUCTION: 'Deduction',
    REGULAR_TAX: 'Regular Tax',
    CAP_GAINS_TAX: 'Capital Gains Tax',
    NET_INCOME: 'Net Income',
}


def bar_chart(breakdown, total_income, max_rate=CHART_MAX_RATE):
    """
    Blocks for the income-vs-rate bar chart.

    Each breakdown line becomes a block whose width is its share of total
    income and whose height is its rate relative to max_rate (capped at 100).
    """
    if not total_income:
        return []

    blocks = []
    for line in breakdown:
        blocks.append({
            'type': line.type.value,
            'label': line.label,
            'rate': line.rate,
            'income': line.income,
            'tax': line.tax,
            'width_percent': (line.income / total_income) * 100,
            'height_percent': min((line.rate / max_rate) * 100, 100)
        })
    return blocks


def flow_diagram(result: TaxResult):
    """
    Nodes and weighted links for the income and tax flow diagram.

    Gross income splits into taxable regular income, taxable gains and the
    part of the deduction income actually absorbed; each taxable part splits
    into tax and net income. Links with no weight are left out.
    """
    if result.total_gross_income <= 0:
        return {'nodes': [], 'links': []}

    absorbed_deduction = max(
        0,
        result.total_gross_income - result.taxable_regular_income - result.taxable_cap_gains
    )

    flows = [
        (GROSS, TAXABLE_REGULAR, result.taxable_regular_income),
        (GROSS, TAXABLE_CAP_GAINS, result.taxable_cap_gains),
        (GROSS, DEDUCTION, absorbed_deduction),
        (TAXABLE_REGULAR, REGULAR_TAX, result.regular_tax),
        (TAXABLE_REGULAR, NET_INCOME, result.taxable_regular_income - result.regular_tax),
        (TAXABLE_CAP_GAINS, CAP_GAINS_TAX, result.cap_gain_tax),
        (TAXABLE_CAP_GAINS, NET_INCOME, result.taxable_cap_gains - result.cap_gain_tax),
        (DEDUCTION, NET_INCOME, absorbed_deduction),
    ]
    links = [
        {'source': source, 'target': target, 'value': value}
        for source, target, value in flows
        if value > 0
    ]

    totals = {GROSS: result.total_gross_income}
    for link in links:
        totals[link['target']] = totals.get(link['target'], 0) + link['value']

    nodes = [
        {'id': node_id, 'label': label, 'value': totals[node_id]}
        for node_id, label in NODE_LABELS.items()
        if node_id in totals
    ]
    return {'nodes': nodes, 'links': links}

from engine.brackets import resolve_brackets
from engine.deductions import resolve_deduction, split_income
from engine.models import BracketLine, LineType, TaxInputs, TaxResult
from engine.taxes import TaxCalculator


def calculate_taxes(inputs: TaxInputs, tax_data=None, tax_calc: TaxCalculator = None) -> TaxResult:
    """
    Run the full estimate (core engine logic).

    Args:
        inputs: TaxInputs for one filer and year
        tax_data: fetched bracket document for the year, or None to use the built-in tables
        tax_calc: calculator to use, a default one is created when omitted

    The result is rebuilt from scratch on every call; nothing is cached or mutated.
    """
    tax_calc = tax_calc or TaxCalculator()

    # --- 1. Deduction ---
    total_standard, final_deduction = resolve_deduction(
        inputs.year,
        inputs.filing_status,
        inputs.is_senior,
        inputs.itemized_deduction,
        inputs.use_standard
    )

    # --- 2. Taxable income split ---
    split = split_income(inputs.regular_income, inputs.cap_gain_income, final_deduction)

    # --- 3. Regular tax ---
    brackets = resolve_brackets(tax_data, inputs.filing_status)
    regular_tax, regular_lines = tax_calc.calculate_regular_tax(split.taxable_regular_income, brackets)

    # --- 4. Capital gains tax ---
    thresholds = tax_calc.capital_gains_thresholds(inputs.year, inputs.filing_status)
    cap_gain_tax, cap_gain_lines = tax_calc.calculate_capital_gains_tax(
        split.taxable_regular_income,
        split.taxable_cap_gains,
        thresholds
    )

    # --- 5. Breakdown (deduction first for the chart) ---
    breakdown = []
    if final_deduction > 0:
        breakdown.append(BracketLine(
            type=LineType.DEDUCTION,
            rate=0,
            income=final_deduction,
            tax=0,
            label='Deduction'
        ))
    breakdown.extend(regular_lines)
    breakdown.extend(cap_gain_lines)

    total_tax = regular_tax + cap_gain_tax
    gross = split.total_gross_income
    effective_rate = (total_tax / gross) * 100 if gross > 0 else 0

    return TaxResult(
        total_standard=total_standard,
        final_deduction=final_deduction,
        taxable_regular_income=split.taxable_regular_income,
        taxable_cap_gains=split.taxable_cap_gains,
        regular_tax=regular_tax,
        cap_gain_tax=cap_gain_tax,
        total_tax=total_tax,
        effective_rate=effective_rate,
        total_gross_income=gross,
        tax_breakdown=tuple(breakdown)
    )

from engine.constants import (
    STANDARD_DEDUCTIONS, SENIOR_ADDON,
    DEFAULT_STANDARD_DEDUCTION, DEFAULT_SENIOR_ADDON
)
from engine.models import IncomeSplit


def senior_addon_category(filing_status: str) -> str:
    return 'married' if 'married' in filing_status else 'single'


def standard_deduction(year: int, filing_status: str, is_senior: bool = False) -> float:
    """Base standard deduction plus the 65+ add-on when it applies."""
    base = STANDARD_DEDUCTIONS.get(year, {}).get(filing_status, DEFAULT_STANDARD_DEDUCTION)

    addon = 0
    if is_senior:
        category = senior_addon_category(filing_status)
        addon = SENIOR_ADDON.get(year, {}).get(category, DEFAULT_SENIOR_ADDON)

    return base + addon


def resolve_deduction(year, filing_status, is_senior, itemized_deduction, use_standard):
    """
    Returns (total_standard, final_deduction).

    With the standard deduction switched on the larger of standard and
    itemized is used; switched off, only the itemized amount counts.
    """
    total_standard = standard_deduction(year, filing_status, is_senior)
    if use_standard:
        final_deduction = max(total_standard, itemized_deduction)
    else:
        final_deduction = itemized_deduction
    return total_standard, final_deduction


def split_income(regular_income, cap_gain_income, final_deduction) -> IncomeSplit:
    """
    Apply the deduction to regular income first; whatever is left over
    reduces capital gains.
    """
    taxable_regular = max(0, regular_income - final_deduction)
    remaining_deduction = max(0, final_deduction - regular_income)
    taxable_cap_gains = max(0, cap_gain_income - remaining_deduction)

    return IncomeSplit(
        taxable_regular_income=taxable_regular,
        taxable_cap_gains=taxable_cap_gains,
        remaining_deduction=remaining_deduction,
        total_gross_income=regular_income + cap_gain_income
    )

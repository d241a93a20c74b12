from typing import List, Sequence, Tuple

from engine.constants import CAP_GAINS_BRACKETS, DEFAULT_CAP_GAINS_BRACKETS, CAP_GAINS_RATES
from engine.models import BracketLine, BracketRow, LineType


class TaxCalculator:
    """
    Handles federal tax calculations: ordinary income through a bracket
    table, long-term capital gains stacked on top of it.
    """

    def __init__(self, cap_gains_rates=CAP_GAINS_RATES):
        self.cap_gains_rates = tuple(cap_gains_rates)

    def calculate_regular_tax(self, taxable_income, brackets: Sequence[BracketRow]) -> Tuple[float, List[BracketLine]]:
        """
        Walk the brackets from the lowest cap up and tax the slice of income
        that falls in each one.

        Returns (regular_tax, lines) with one Regular line per bracket that
        holds income.
        """
        regular_tax = 0
        lines = []

        prev_cap = 0
        for bracket in brackets:
            width = bracket.cap - prev_cap
            income_in_bracket = min(max(0, taxable_income - prev_cap), width)

            if income_in_bracket > 0:
                tax_amount = income_in_bracket * bracket.rate
                regular_tax += tax_amount
                lines.append(BracketLine(
                    type=LineType.REGULAR,
                    rate=bracket.rate,
                    income=income_in_bracket,
                    tax=tax_amount,
                    label=f"Regular {bracket.rate * 100:.1f}%"
                ))
            prev_cap = bracket.cap

            if taxable_income <= prev_cap:
                break

        return regular_tax, lines

    @staticmethod
    def capital_gains_thresholds(year, filing_status):
        return CAP_GAINS_BRACKETS.get(year, {}).get(filing_status, DEFAULT_CAP_GAINS_BRACKETS)

    @staticmethod
    def capital_gains_layers(taxable_regular_income, taxable_cap_gains, thresholds):
        """
        Split gains across the 0/15/20% layers. Ordinary income fills the
        layers first, gains sit on top of it.
        """
        low, high = thresholds
        floor = taxable_regular_income
        ceiling = taxable_regular_income + taxable_cap_gains

        income_in_0 = max(0, min(ceiling, low) - floor)
        income_in_15 = max(0, min(ceiling, high) - max(floor, low))
        income_in_20 = max(0, ceiling - max(floor, high))

        return income_in_0, income_in_15, income_in_20

    def calculate_capital_gains_tax(self, taxable_regular_income, taxable_cap_gains, thresholds) -> Tuple[float, List[BracketLine]]:
        layers = self.capital_gains_layers(taxable_regular_income, taxable_cap_gains, thresholds)

        cap_gain_tax = 0
        lines = []
        for income, rate in zip(layers, self.cap_gains_rates):
            cap_gain_tax += income * rate
            if income > 0:
                lines.append(BracketLine(
                    type=LineType.CAP_GAINS,
                    rate=rate,
                    income=income,
                    tax=income * rate,
                    label=f"Cap Gains {rate * 100:.0f}%"
                ))

        return cap_gain_tax, lines

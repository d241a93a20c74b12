import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class LineType(str, Enum):
    REGULAR = 'Regular'
    CAP_GAINS = 'Cap Gains'
    DEDUCTION = 'Deduction'


@dataclass(frozen=True)
class BracketRow:
    """One marginal bracket: income up to `cap` is taxed at `rate`."""
    rate: float
    cap: float = math.inf

    @property
    def is_open_ended(self):
        return math.isinf(self.cap)


@dataclass(frozen=True)
class BracketLine:
    """A slice of income taxed at a single rate, as shown in the breakdown."""
    type: LineType
    rate: float
    income: float
    tax: float
    label: str

    def to_dict(self):
        return {
            'type': self.type.value,
            'rate': self.rate,
            'income': self.income,
            'tax': self.tax,
            'label': self.label
        }


@dataclass(frozen=True)
class TaxInputs:
    """
    Inputs for a single calculation.
    No validation here (that's the schemas layer).
    """
    year: int
    filing_status: str
    is_senior: bool = False
    regular_income: float = 0.0
    cap_gain_income: float = 0.0
    itemized_deduction: float = 0.0
    use_standard: bool = True


@dataclass(frozen=True)
class IncomeSplit:
    taxable_regular_income: float
    taxable_cap_gains: float
    remaining_deduction: float
    total_gross_income: float


@dataclass(frozen=True)
class TaxResult:
    total_standard: float
    final_deduction: float
    taxable_regular_income: float
    taxable_cap_gains: float
    regular_tax: float
    cap_gain_tax: float
    total_tax: float
    effective_rate: float
    total_gross_income: float
    tax_breakdown: Tuple[BracketLine, ...] = field(default_factory=tuple)

    @property
    def net_income(self):
        return self.total_gross_income - self.total_tax

    def to_dict(self):
        return {
            'total_standard': self.total_standard,
            'final_deduction': self.final_deduction,
            'taxable_regular_income': self.taxable_regular_income,
            'taxable_cap_gains': self.taxable_cap_gains,
            'regular_tax': self.regular_tax,
            'cap_gain_tax': self.cap_gain_tax,
            'total_tax': self.total_tax,
            'effective_rate': self.effective_rate,
            'total_gross_income': self.total_gross_income,
            'net_income': self.net_income,
            'tax_breakdown': [line.to_dict() for line in self.tax_breakdown]
        }

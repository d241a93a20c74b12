from typing import Annotated, List, Literal
from pydantic import BaseModel, Field

from engine.constants import MAX_INCOME_STREAMS

Amount = Annotated[float, Field(ge=0)]
FilingStatus = Literal['single', 'married_jointly', 'married_separately', 'head_of_household']


class EstimateParams(BaseModel):
    """Estimator inputs with validation"""
    # Configuration
    year: int = Field(ge=2000, le=2100, default=2026)
    filing_status: FilingStatus = 'single'
    is_senior: bool = False

    # Income streams (summed before calculation)
    regular_incomes: List[Amount] = Field(default_factory=lambda: [60000], min_length=1, max_length=MAX_INCOME_STREAMS)
    cap_gain_incomes: List[Amount] = Field(default_factory=lambda: [0], min_length=1, max_length=MAX_INCOME_STREAMS)

    # Deductions
    itemized_deduction: float = Field(ge=0, default=0)
    use_standard: bool = True

    @property
    def regular_income(self) -> float:
        return sum(self.regular_incomes)

    @property
    def cap_gain_income(self) -> float:
        return sum(self.cap_gain_incomes)


class SnapParams(EstimateParams):
    """Extends estimate params with the dragged slider value"""
    value: float = Field(ge=0)
    snap_enabled: bool = True

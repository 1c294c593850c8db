from typing import Dict
from pydantic import BaseModel, Field, model_validator

from assurance_agent.domain.models.intent import Intent


class BudgetRatios(BaseModel):
    """Share of the available budget given to each context slice"""
    events: float = Field(ge=0.0, le=1.0)
    docs: float = Field(ge=0.0, le=1.0)
    history: float = Field(ge=0.0, le=1.0)

    @model_validator(mode="after")
    def check_total(self) -> "BudgetRatios":
        if self.events + self.docs + self.history > 1.0 + 1e-9:
            raise ValueError("Budget ratios must not sum to more than 1.0")
        return self


# Debugging needs raw evidence, general questions need documentation
DEFAULT_BUDGET_RATIOS: Dict[Intent, BudgetRatios] = {
    Intent.DEBUG: BudgetRatios(events=0.6, docs=0.1, history=0.3),
    Intent.GENERAL: BudgetRatios(events=0.2, docs=0.5, history=0.3),
    Intent.ANALYTICS: BudgetRatios(events=0.5, docs=0.2, history=0.3),
}

BALANCED_RATIOS = BudgetRatios(events=0.5, docs=0.2, history=0.3)


class TokenBudgetConfig(BaseModel):
    """Fixed token budget for one prompt and how it is reserved"""
    total_budget: int = Field(default=6000, ge=0)
    system_prompt_reserve: int = Field(default=250, ge=0)
    response_reserve: int = Field(default=2000, ge=0)
    max_docs: int = Field(default=3, ge=0, description="Top-ranked documents considered for the prompt")
    ratios: Dict[Intent, BudgetRatios] = Field(default_factory=lambda: dict(DEFAULT_BUDGET_RATIOS))

    def ratios_for(self, intent: Intent) -> BudgetRatios:
        """Get the slice ratios for an intent, balanced when unmapped"""
        return self.ratios.get(intent, BALANCED_RATIOS)


class BudgetAllocation(BaseModel):
    """Nominal token slices for a single invocation"""
    available: int = 0
    events: int = 0
    docs: int = 0
    history: int = 0

    @property
    def total(self) -> int:
        return self.events + self.docs + self.history

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional

class BudgetBase(BaseModel):
    category: str
    limit: float
    month: int
    year: int

class BudgetCreate(BudgetBase):
    limit: float = Field(..., gt=0, allow_inf_nan=False)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1, le=9998)

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("La catégorie ne peut pas être vide")
        return v

class BudgetUpdate(BaseModel):
    # Seule la limite est modifiable, les autres champs sont ignorés
    limit: Optional[float] = Field(None, gt=0, allow_inf_nan=False)

class Budget(BudgetBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

class BudgetSummary(Budget):
    spent: float
    remaining: float
    percentage: float
    alert: Optional[str] = None

class PeriodSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    month: int
    year: int
    total_limit: float
    total_spent: float
    total_remaining: float
    budgets: List[BudgetSummary]

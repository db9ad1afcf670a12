from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
import datetime
import enum
from typing import Optional

class TransactionKind(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


def signed_amount(amount: float, kind: TransactionKind) -> float:
    """
    Montant tel qu'il est stocké: positif pour un revenu, négatif pour une dépense.
    Le signe fourni par l'appelant est ignoré, seul le type compte.
    """
    if kind == TransactionKind.EXPENSE:
        return -abs(amount)
    return abs(amount)


def kind_of(stored_amount: float) -> TransactionKind:
    """Type déduit du signe du montant stocké (0 compte comme revenu)"""
    return TransactionKind.INCOME if stored_amount >= 0 else TransactionKind.EXPENSE


def _clean_category(value):
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("La catégorie ne peut pas être vide")
    return value


class TransactionCreate(BaseModel):
    category: str
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    kind: TransactionKind
    description: Optional[str] = ""
    date: datetime.date

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: str) -> str:
        return _clean_category(v)

    @field_validator("description")
    @classmethod
    def description_default(cls, v: Optional[str]) -> str:
        return v or ""


class TransactionUpdate(BaseModel):
    """Modification partielle: un champ absent (ou null) garde sa valeur stockée"""
    category: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    kind: Optional[TransactionKind] = None
    description: Optional[str] = None
    date: Optional[datetime.date] = None

    @field_validator("category")
    @classmethod
    def category_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _clean_category(v)


class Transaction(BaseModel):
    id: int
    category: str
    amount: float
    kind: TransactionKind
    description: str
    date: str

    @classmethod
    def from_model(cls, row) -> "Transaction":
        """Expose le montant en valeur absolue avec son type"""
        return cls(
            id=row.id,
            category=row.category,
            amount=abs(row.amount),
            kind=kind_of(row.amount),
            description=row.description or "",
            date=row.date,
        )


class TransactionStats(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    income_total: float
    expense_total: float
    balance: float


class CategoryTotal(BaseModel):
    category: str
    total: float
    count: int

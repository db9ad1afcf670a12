from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from database.models import TransactionModel, BudgetModel
from models.transaction import (
    TransactionCreate, TransactionUpdate, TransactionKind, signed_amount, kind_of
)
from models.budget import BudgetCreate, BudgetUpdate
import logging

logger = logging.getLogger(__name__)


class DuplicateBudgetError(Exception):
    """Un budget existe déjà pour cette catégorie et cette période"""

    def __init__(self, category: str, month: int, year: int):
        self.category = category
        self.month = month
        self.year = year
        super().__init__("Un budget existe déjà pour cette catégorie et période")


def _iso(value):
    # Les dates sont stockées en texte YYYY-MM-DD, la comparaison de chaînes suffit
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _filter_transactions(db: Session, category=None, kind=None, date_from=None, date_to=None):
    query = db.query(TransactionModel)
    if category:
        query = query.filter(TransactionModel.category == category)
    if kind == TransactionKind.INCOME:
        query = query.filter(TransactionModel.amount >= 0)
    elif kind == TransactionKind.EXPENSE:
        query = query.filter(TransactionModel.amount < 0)
    if date_from:
        query = query.filter(TransactionModel.date >= _iso(date_from))
    if date_to:
        query = query.filter(TransactionModel.date <= _iso(date_to))
    return query

# Transaction CRUD functions
def create_transaction(db: Session, transaction: TransactionCreate):
    """Crée une nouvelle transaction, le montant est signé selon son type"""
    db_transaction = TransactionModel(
        category=transaction.category,
        amount=signed_amount(transaction.amount, transaction.kind),
        description=transaction.description or "",
        date=_iso(transaction.date)
    )
    db.add(db_transaction)
    db.commit()
    db.refresh(db_transaction)
    logger.info(f"Transaction {db_transaction.id} créée ({transaction.kind.value}, {transaction.category})")
    return db_transaction

def get_transactions(db: Session, category=None, kind=None, date_from=None, date_to=None):
    """
    Récupère les transactions filtrées, de la plus récente à la plus ancienne.
    Chaque filtre fourni restreint le résultat, les bornes de date sont incluses.
    """
    query = _filter_transactions(db, category, kind, date_from, date_to)
    return query.order_by(TransactionModel.date.desc(), TransactionModel.id.desc()).all()

def get_transaction_by_id(db: Session, transaction_id: int):
    """Récupère une transaction par son ID"""
    return db.query(TransactionModel).filter(TransactionModel.id == transaction_id).first()

def update_transaction(db: Session, transaction_id: int, transaction_update: TransactionUpdate):
    """
    Met à jour les champs fournis d'une transaction.
    Si seul le montant change, le type stocké est conservé (et inversement).
    """
    transaction = get_transaction_by_id(db, transaction_id)
    if not transaction:
        return None

    if transaction_update.category is not None:
        transaction.category = transaction_update.category
    if transaction_update.description is not None:
        transaction.description = transaction_update.description
    if transaction_update.date is not None:
        transaction.date = _iso(transaction_update.date)
    if transaction_update.amount is not None or transaction_update.kind is not None:
        amount = transaction_update.amount if transaction_update.amount is not None else abs(transaction.amount)
        kind = transaction_update.kind if transaction_update.kind is not None else kind_of(transaction.amount)
        transaction.amount = signed_amount(amount, kind)

    db.commit()
    db.refresh(transaction)
    logger.info(f"Transaction {transaction_id} modifiée")
    return transaction

def delete_transaction(db: Session, transaction_id: int):
    """Supprime une transaction"""
    transaction = get_transaction_by_id(db, transaction_id)
    if not transaction:
        return False
    db.delete(transaction)
    db.commit()
    logger.info(f"Transaction {transaction_id} supprimée")
    return True

def get_transaction_stats(db: Session):
    """Totaux des revenus et des dépenses, recalculés à chaque appel"""
    income = db.query(func.coalesce(func.sum(TransactionModel.amount), 0)).filter(
        TransactionModel.amount >= 0
    ).scalar()
    expenses = db.query(func.coalesce(func.sum(func.abs(TransactionModel.amount)), 0)).filter(
        TransactionModel.amount < 0
    ).scalar()
    income = float(income or 0)
    expenses = float(expenses or 0)
    return {
        'income_total': income,
        'expense_total': expenses,
        'balance': income - expenses
    }

def get_expenses_by_category(db: Session, date_from=None, date_to=None):
    """Dépenses totales par catégorie, la plus dépensière en premier"""
    total = func.sum(func.abs(TransactionModel.amount))
    query = _filter_transactions(db, kind=TransactionKind.EXPENSE, date_from=date_from, date_to=date_to)
    rows = query.with_entities(
        TransactionModel.category,
        total.label("total"),
        func.count(TransactionModel.id).label("transaction_count")
    ).group_by(TransactionModel.category).order_by(total.desc(), TransactionModel.category).all()
    return [{
        'category': row.category,
        'total': float(row.total or 0),
        'count': row.transaction_count
    } for row in rows]

def sum_expenses(db: Session, category: str, start: str, end: str):
    """Somme des valeurs absolues des dépenses d'une catégorie sur [start, end)"""
    total = db.query(func.coalesce(func.sum(func.abs(TransactionModel.amount)), 0)).filter(
        TransactionModel.category == category,
        TransactionModel.amount < 0,
        TransactionModel.date >= start,
        TransactionModel.date < end
    ).scalar()
    return float(total or 0)

# Budget CRUD functions
def create_budget(db: Session, budget: BudgetCreate):
    """
    Crée un budget pour une catégorie et une période.
    Un budget existant n'est jamais écrasé: la contrainte d'unicité lève DuplicateBudgetError.
    """
    db_budget = BudgetModel(
        category=budget.category,
        limit=budget.limit,
        month=budget.month,
        year=budget.year
    )
    db.add(db_budget)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"Budget en double refusé: {budget.category} {budget.month:02d}/{budget.year}")
        raise DuplicateBudgetError(budget.category, budget.month, budget.year) from exc
    db.refresh(db_budget)
    logger.info(f"Budget {db_budget.id} créé ({budget.category} {budget.month:02d}/{budget.year})")
    return db_budget

def get_budget_by_id(db: Session, budget_id: int):
    """Récupère un budget par son ID"""
    return db.query(BudgetModel).filter(BudgetModel.id == budget_id).first()

def get_all_budgets(db: Session, month: int = None, year: int = None):
    """Récupère tous les budgets, optionnellement filtrés par mois et/ou année"""
    query = db.query(BudgetModel)
    if month is not None:
        query = query.filter(BudgetModel.month == month)
    if year is not None:
        query = query.filter(BudgetModel.year == year)
    return query.order_by(
        BudgetModel.year.desc(), BudgetModel.month.desc(), BudgetModel.category
    ).all()

def update_budget(db: Session, budget_id: int, budget_update: BudgetUpdate):
    """Met à jour la limite d'un budget"""
    budget = get_budget_by_id(db, budget_id)
    if not budget:
        return None

    if budget_update.limit is not None:
        budget.limit = budget_update.limit

    db.commit()
    db.refresh(budget)
    logger.info(f"Budget {budget_id} modifié")
    return budget

def delete_budget(db: Session, budget_id: int):
    """Supprime un budget"""
    budget = get_budget_by_id(db, budget_id)
    if not budget:
        return False
    db.delete(budget)
    db.commit()
    logger.info(f"Budget {budget_id} supprimé")
    return True

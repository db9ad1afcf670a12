from typing import Dict, Optional, Tuple
from datetime import datetime
from sqlalchemy.orm import Session
from database.crud import get_budget_by_id, get_all_budgets, sum_expenses
import logging

logger = logging.getLogger(__name__)

class BudgetService:
    def __init__(self):
        # Seuils d'alerte (en pourcentage de la limite consommée)
        self.alert_thresholds = {
            'danger': 100,
            'warning': 80
        }

    @staticmethod
    def month_window(month: int, year: int) -> Tuple[str, str]:
        """
        Fenêtre [début, fin) d'un mois: le 1er du mois et le 1er du mois suivant.
        Décembre bascule sur janvier de l'année suivante.
        """
        start = f"{year:04d}-{month:02d}-01"
        if month == 12:
            end = f"{year + 1:04d}-01-01"
        else:
            end = f"{year:04d}-{month + 1:02d}-01"
        return start, end

    def alert_level(self, percentage: float) -> Optional[str]:
        if percentage >= self.alert_thresholds['danger']:
            return 'danger'
        if percentage >= self.alert_thresholds['warning']:
            return 'warning'
        return None

    def compute(self, budget, spent: float) -> Dict:
        """Dépensé, restant, pourcentage et alerte d'un budget"""
        limit = budget.limit
        # Une limite nulle n'est pas acceptée à la création mais peut exister en base
        percentage = round(spent / limit * 100, 2) if limit > 0 else 0.0

        return {
            'id': budget.id,
            'category': budget.category,
            'limit': limit,
            'month': budget.month,
            'year': budget.year,
            'spent': round(spent, 2),
            'remaining': round(limit - spent, 2),
            'percentage': percentage,
            'alert': self.alert_level(percentage)
        }

    def summarize(self, db: Session, budget) -> Dict:
        start, end = self.month_window(budget.month, budget.year)
        spent = sum_expenses(db, budget.category, start, end)
        return self.compute(budget, spent)

    def get_summary(self, db: Session, budget_id: int) -> Optional[Dict]:
        """Résumé d'un budget, None s'il n'existe pas"""
        budget = get_budget_by_id(db, budget_id)
        if not budget:
            return None
        return self.summarize(db, budget)

    def get_period_summary(self, db: Session, month: int = None, year: int = None) -> Dict:
        """
        Résumé de tous les budgets d'une période, le mois courant par défaut
        """
        now = datetime.now()
        if month is None:
            month = now.month
        if year is None:
            year = now.year

        summaries = [self.summarize(db, budget) for budget in get_all_budgets(db, month, year)]
        total_limit = sum(s['limit'] for s in summaries)
        total_spent = sum(s['spent'] for s in summaries)

        logger.debug(f"Résumé {month:02d}/{year}: {len(summaries)} budget(s)")
        return {
            'month': month,
            'year': year,
            'total_limit': round(total_limit, 2),
            'total_spent': round(total_spent, 2),
            'total_remaining': round(total_limit - total_spent, 2),
            'budgets': summaries
        }

from sqlalchemy import Column, Integer, String, Float, UniqueConstraint
from database.database import Base

class TransactionModel(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)  # signé: >= 0 revenu, < 0 dépense
    description = Column(String, nullable=False, default="")
    date = Column(String, nullable=False, index=True)  # YYYY-MM-DD

class BudgetModel(Base):
    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, nullable=False, index=True)
    limit = Column(Float, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    year = Column(Integer, nullable=False)  # ex: 2025

    __table_args__ = (UniqueConstraint("category", "month", "year", name="_category_month_year_uc"),)

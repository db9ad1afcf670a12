from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Moteur SQLAlchemy et fabrique de sessions pour une base SQLite.
    Construit une seule fois par application puis injecté dans les endpoints.
    """

    def __init__(self, url: str):
        self.url = url
        connect_args = {}
        engine_kwargs = {}
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            # Base en mémoire: une seule connexion partagée, sinon chaque session voit une base vide
            if url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self):
        """Crée les tables si elles n'existent pas"""
        from database.models import TransactionModel, BudgetModel
        Base.metadata.create_all(bind=self.engine)

        db = self.SessionLocal()
        try:
            transaction_count = db.query(TransactionModel).count()
            budget_count = db.query(BudgetModel).count()
        finally:
            db.close()

        logger.info(f"Base de données initialisée: {self.url}")
        logger.info(f"Transactions: {transaction_count}, Budgets: {budget_count}")

    def session(self):
        """Générateur de session, fermée après usage"""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self):
        self.engine.dispose()

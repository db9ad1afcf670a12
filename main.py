from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
import datetime
import uvicorn
import logging

from config import Config
from database.database import Database
from database.crud import (
    DuplicateBudgetError,
    create_transaction, get_transactions, get_transaction_by_id, update_transaction,
    delete_transaction, get_transaction_stats, get_expenses_by_category,
    create_budget, get_budget_by_id, get_all_budgets, update_budget, delete_budget
)
from models.transaction import (
    Transaction, TransactionCreate, TransactionUpdate, TransactionKind,
    TransactionStats, CategoryTotal
)
from models.budget import Budget, BudgetCreate, BudgetUpdate, BudgetSummary, PeriodSummary
from services.budget_service import BudgetService
from services.export_service import ExportService

logger = logging.getLogger(__name__)

budget_service = BudgetService()
export_service = ExportService()

router = APIRouter(prefix="/api")


def get_db(request: Request):
    """Dependency: une session par requête, issue de la base de l'application"""
    yield from request.app.state.database.session()


def server_error(e: Exception) -> dict:
    return {"error": "Erreur serveur", "message": str(e)}


# Transaction endpoints
@router.get("/transactions", response_model=List[Transaction])
def list_transactions_endpoint(
    category: Optional[str] = None,
    kind: Optional[TransactionKind] = None,
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db)
):
    """
    Récupère les transactions, optionnellement filtrées par catégorie, type et dates
    """
    try:
        transactions = get_transactions(db, category, kind, date_from, date_to)
        return [Transaction.from_model(t) for t in transactions]
    except Exception as e:
        logger.error(f"Erreur lors de la lecture des transactions: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/transactions/stats/summary", response_model=TransactionStats)
def transaction_stats_endpoint(db: Session = Depends(get_db)):
    """
    Totaux des revenus, des dépenses et solde
    """
    try:
        return TransactionStats(**get_transaction_stats(db))
    except Exception as e:
        logger.error(f"Erreur lors du calcul des statistiques: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/transactions/stats/by-category", response_model=List[CategoryTotal])
def expenses_by_category_endpoint(
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db)
):
    """
    Dépenses par catégorie (graphique du tableau de bord)
    """
    try:
        return [CategoryTotal(**row) for row in get_expenses_by_category(db, date_from, date_to)]
    except Exception as e:
        logger.error(f"Erreur lors du calcul des dépenses par catégorie: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/transactions/{transaction_id}", response_model=Transaction)
def get_transaction_endpoint(transaction_id: int, db: Session = Depends(get_db)):
    try:
        transaction = get_transaction_by_id(db, transaction_id)
        if not transaction:
            raise HTTPException(status_code=404, detail="Transaction non trouvée")
        return Transaction.from_model(transaction)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la lecture de la transaction {transaction_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.post("/transactions", response_model=Transaction, status_code=201)
def create_transaction_endpoint(transaction: TransactionCreate, db: Session = Depends(get_db)):
    """
    Crée une transaction. Le montant est toujours positif, le type donne le sens
    """
    try:
        return Transaction.from_model(create_transaction(db, transaction))
    except Exception as e:
        logger.error(f"Erreur lors de la création de la transaction: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.put("/transactions/{transaction_id}", response_model=Transaction)
def update_transaction_endpoint(
    transaction_id: int,
    transaction_update: TransactionUpdate,
    db: Session = Depends(get_db)
):
    """
    Modifie une transaction, seuls les champs fournis changent
    """
    try:
        updated_transaction = update_transaction(db, transaction_id, transaction_update)
        if not updated_transaction:
            raise HTTPException(status_code=404, detail="Transaction non trouvée")
        return Transaction.from_model(updated_transaction)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la modification de la transaction {transaction_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.delete("/transactions/{transaction_id}")
def delete_transaction_endpoint(transaction_id: int, db: Session = Depends(get_db)):
    """
    Supprime une transaction spécifique
    """
    try:
        if not delete_transaction(db, transaction_id):
            raise HTTPException(status_code=404, detail="Transaction non trouvée")
        return {"message": "Transaction supprimée avec succès"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la suppression de la transaction {transaction_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

# Budget endpoints
@router.get("/budgets", response_model=List[Budget])
def list_budgets_endpoint(
    month: Optional[int] = None,
    year: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Récupère tous les budgets, optionnellement filtrés par mois et/ou année
    """
    try:
        return [Budget.model_validate(b) for b in get_all_budgets(db, month, year)]
    except Exception as e:
        logger.error(f"Erreur lors de la lecture des budgets: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/budgets/summary", response_model=PeriodSummary)
def period_summary_endpoint(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """
    Résumé de tous les budgets d'un mois (le mois courant par défaut)
    """
    try:
        return PeriodSummary(**budget_service.get_period_summary(db, month, year))
    except Exception as e:
        logger.error(f"Erreur lors du résumé de la période: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/budgets/{budget_id}", response_model=Budget)
def get_budget_endpoint(budget_id: int, db: Session = Depends(get_db)):
    try:
        budget = get_budget_by_id(db, budget_id)
        if not budget:
            raise HTTPException(status_code=404, detail="Budget non trouvé")
        return Budget.model_validate(budget)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la lecture du budget {budget_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.post("/budgets", response_model=Budget, status_code=201)
def create_budget_endpoint(budget: BudgetCreate, db: Session = Depends(get_db)):
    """
    Crée un budget, refusé s'il en existe déjà un pour la catégorie et la période
    """
    try:
        return Budget.model_validate(create_budget(db, budget))
    except DuplicateBudgetError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Erreur lors de la création du budget: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.put("/budgets/{budget_id}", response_model=Budget)
def update_budget_endpoint(budget_id: int, budget_update: BudgetUpdate, db: Session = Depends(get_db)):
    """
    Met à jour la limite d'un budget
    """
    try:
        updated_budget = update_budget(db, budget_id, budget_update)
        if not updated_budget:
            raise HTTPException(status_code=404, detail="Budget non trouvé")
        return Budget.model_validate(updated_budget)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la modification du budget {budget_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.delete("/budgets/{budget_id}")
def delete_budget_endpoint(budget_id: int, db: Session = Depends(get_db)):
    """
    Supprime un budget
    """
    try:
        if not delete_budget(db, budget_id):
            raise HTTPException(status_code=404, detail="Budget non trouvé")
        return {"message": "Budget supprimé avec succès"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors de la suppression du budget {budget_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

@router.get("/budgets/{budget_id}/summary", response_model=BudgetSummary)
def budget_summary_endpoint(budget_id: int, db: Session = Depends(get_db)):
    """
    Résumé d'un budget: dépensé, restant, pourcentage et niveau d'alerte
    """
    try:
        summary = budget_service.get_summary(db, budget_id)
        if summary is None:
            raise HTTPException(status_code=404, detail="Budget non trouvé")
        return BudgetSummary(**summary)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Erreur lors du résumé du budget {budget_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))

# Export endpoints
@router.get("/export/csv")
def export_csv_endpoint(
    category: Optional[str] = None,
    kind: Optional[TransactionKind] = None,
    date_from: Optional[datetime.date] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime.date] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db)
):
    """
    Exporte les transactions filtrées en CSV
    """
    try:
        transactions = get_transactions(db, category, kind, date_from, date_to)
        content = export_service.to_csv(Transaction.from_model(t) for t in transactions)
        return Response(
            content=content,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="transactions.csv"'}
        )
    except Exception as e:
        logger.error(f"Erreur lors de l'export CSV: {str(e)}")
        raise HTTPException(status_code=500, detail=server_error(e))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = []
    for error in exc.errors():
        names = [str(part) for part in error.get("loc", ()) if isinstance(part, str) and part not in ("body", "query", "path")]
        field = ".".join(names) or "body"
        if field not in fields:
            fields.append(field)
    return JSONResponse(
        status_code=400,
        content={"error": f"Données invalides: {', '.join(fields)}", "fields": fields}
    )

async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Erreur non gérée sur {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=server_error(exc))


def create_app(database: Database = None) -> FastAPI:
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if database is None:
        database = Database(Config.DATABASE_URL)
    database.init_db()

    app = FastAPI(title="Budget Personnel API", version="1.0.0")
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=Config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/")
    def root():
        return {"message": "API Budget Personnel - Backend actif"}

    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=Config.HOST, port=Config.PORT)

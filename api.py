"""
HTTP API for the finance tracker, served with FastAPI.
Routes map one-to-one onto TransactionService operations under /api/tx
and /api/budgets.
"""

import logging
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, get_settings
from models import Budget, BudgetBase, Transaction, TransactionCreate
from services import Month, TransactionService, build_insight_strategy, parse_date, seed_from_csv

logger = logging.getLogger(__name__)


def get_service(request: Request) -> TransactionService:
    return request.app.state.service


def month_param(month: str = Query(..., description="Month label, YYYY-MM")) -> Month:
    try:
        parsed = Month.parse(month)
        parsed.previous()  # comparisons need the prior month to exist
        return parsed
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def create_app(service: Optional[TransactionService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Service to serve; built with the configured insight strategy if omitted
        settings: Settings for CORS; defaults to the global settings

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_settings()
    if service is None:
        service = TransactionService(insights=build_insight_strategy(settings))

    app = FastAPI(title="Finance Tracker API", version="0.1.0")
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ==================== Listing ====================

    @app.get("/api/tx", response_model=List[Transaction])
    def list_transactions(
        q: Optional[str] = None,
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        category: Optional[str] = None,
        svc: TransactionService = Depends(get_service),
    ):
        return svc.list_transactions(
            q=q,
            date_from=parse_date(date_from),
            date_to=parse_date(date_to),
            category=category
        )

    @app.get("/api/tx/export")
    def export_transactions(
        q: Optional[str] = None,
        date_from: Optional[str] = Query(None, alias="from"),
        date_to: Optional[str] = Query(None, alias="to"),
        category: Optional[str] = None,
        svc: TransactionService = Depends(get_service),
    ):
        csv_text = svc.export_csv(
            q=q,
            date_from=parse_date(date_from),
            date_to=parse_date(date_to),
            category=category
        )
        return Response(
            content=csv_text,
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="transactions.csv"'}
        )

    # ==================== Monthly views ====================

    @app.get("/api/tx/summary")
    def summary(month: Month = Depends(month_param), svc: TransactionService = Depends(get_service)) -> Dict:
        return svc.monthly_summary(month).to_dict()

    @app.get("/api/tx/insights")
    def insights(month: Month = Depends(month_param), svc: TransactionService = Depends(get_service)) -> Dict:
        return {"month": str(month), "summary": svc.monthly_insight(month)}

    @app.get("/api/tx/weekly")
    def weekly(month: Month = Depends(month_param), svc: TransactionService = Depends(get_service)) -> Dict:
        return {"month": str(month), "weeks": [bucket.to_dict() for bucket in svc.weekly_buckets(month)]}

    @app.get("/api/tx/compare")
    def compare(month: Month = Depends(month_param), svc: TransactionService = Depends(get_service)) -> Dict:
        return svc.month_comparison(month).to_dict()

    # ==================== Budgets ====================

    @app.get("/api/budgets", response_model=List[Budget])
    def list_budgets(svc: TransactionService = Depends(get_service)):
        return svc.list_budgets()

    @app.put("/api/budgets", response_model=Budget)
    def save_budget(body: BudgetBase, svc: TransactionService = Depends(get_service)):
        try:
            return svc.set_budget(body.category, body.monthly_limit)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/api/budgets/alerts")
    def budget_alerts(month: Month = Depends(month_param), svc: TransactionService = Depends(get_service)) -> Dict:
        return {"month": str(month), "alerts": [alert.to_dict() for alert in svc.budget_alerts(month)]}

    @app.delete("/api/budgets/{category}", status_code=204)
    def delete_budget(category: str, svc: TransactionService = Depends(get_service)):
        if not svc.remove_budget(category):
            raise HTTPException(status_code=404, detail="Budget not found")
        return Response(status_code=204)

    # ==================== CRUD ====================

    @app.get("/api/tx/{transaction_id}", response_model=Transaction)
    def get_transaction(transaction_id: int, svc: TransactionService = Depends(get_service)):
        transaction = svc.get_transaction(transaction_id)
        if transaction is None:
            raise HTTPException(status_code=404, detail="Transaction not found")
        return transaction

    @app.post("/api/tx", response_model=Transaction)
    def create_transaction(body: TransactionCreate, svc: TransactionService = Depends(get_service)):
        return svc.create_transaction(body.to_transaction())

    @app.post("/api/tx/{transaction_id}/duplicate", response_model=Transaction)
    def duplicate_transaction(transaction_id: int, svc: TransactionService = Depends(get_service)):
        copy = svc.duplicate_transaction(transaction_id)
        if copy is None:
            raise HTTPException(status_code=404, detail="Transaction not found")
        return copy

    @app.delete("/api/tx/{transaction_id}", status_code=204)
    def delete_transaction(transaction_id: int, svc: TransactionService = Depends(get_service)):
        if not svc.delete_transaction(transaction_id):
            raise HTTPException(status_code=404, detail="Transaction not found")
        return Response(status_code=204)

    return app


def main():
    """Initialize the database, seed it if empty, and serve the API."""
    import uvicorn
    from dotenv import load_dotenv
    from db_engine import init_db

    load_dotenv()
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    init_db()
    seed_from_csv(settings.seed_csv_path)
    app = create_app(settings=settings)

    logger.info(f"Serving API on {settings.api_host}:{settings.api_port}")
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()

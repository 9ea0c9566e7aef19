# main.py
# Role: Application entry point for the expense manager API.
#       Configures logging, creates database tables, registers the domain
#       error handler, and includes all route modules.

"""
Main FastAPI app for the expense manager.

Here we only:
- configure logging
- create DB tables
- turn domain errors into JSON responses
- include route modules
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import LOG_LEVEL
from db import Base, engine
from errors import LedgerError
from app.routes_root import router as root_router
from app.routes_workspaces import router as workspaces_router
from app.routes_categories import router as categories_router
from app.routes_budgets import router as budgets_router
from app.routes_transfers import router as transfers_router
from app.routes_expenses import router as expenses_router
from app.routes_income import router as income_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("expense_manager")


# -------------------------------------------------------------------
# App & DB setup
# -------------------------------------------------------------------

# Create database tables (only if they don't exist yet).
Base.metadata.create_all(bind=engine)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a domain error as {"error": kind, "message": message}."""
    logger.warning("[%s %s] %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "message": exc.message},
    )


def create_app() -> FastAPI:
    application = FastAPI(title="Expense Manager")
    application.add_exception_handler(LedgerError, ledger_error_handler)

    # Health / landing
    application.include_router(root_router)

    # Tenants and the monthly dashboard
    application.include_router(workspaces_router)

    # Reference data
    application.include_router(categories_router)
    application.include_router(budgets_router)

    # Ledger writes and spend records
    application.include_router(transfers_router)
    application.include_router(expenses_router)
    application.include_router(income_router)

    return application


# FastAPI application instance
app = create_app()

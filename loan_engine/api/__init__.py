"""
Loan Engine API Application Factory
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from .dependencies import get_valuation
from .loans import router as loans_router
from .overdue import router as overdue_router
from .rates import router as rates_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Loan Engine API",
        description="Amortization, balances, profit recognition and loan status for microfinance loans",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    app.include_router(rates_router, prefix="/rates", tags=["Rates"])
    app.include_router(overdue_router, prefix="/overdue", tags=["Overdue"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": __version__}

    return app


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "loan_engine.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )


app = create_app()


__all__ = ["app", "create_app", "get_valuation", "run_server"]

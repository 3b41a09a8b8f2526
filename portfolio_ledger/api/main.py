"""
FastAPI main application for the portfolio ledger.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from portfolio_ledger import __version__
from portfolio_ledger.core.config import LedgerSettings
from portfolio_ledger.core.exceptions import (
    ConcurrencyConflictError,
    DuplicatePortfolioError,
    LedgerException,
    PortfolioError,
    PortfolioNotFoundError,
    PositionNotFoundError,
    QuoteProviderError,
    ValidationError,
)
from portfolio_ledger.core.interfaces.quotes import IQuoteProvider
from portfolio_ledger.core.interfaces.storage import ILedgerStore
from portfolio_ledger.core.utils.log_setup import configure_logging
from portfolio_ledger.infrastructure.quotes import StaticQuoteProvider
from portfolio_ledger.infrastructure.storage import InMemoryLedgerStore

from .dependencies import LedgerServices
from .routers import portfolios

# First match wins, so subclasses come before their bases
_STATUS_BY_ERROR: list[tuple[type[LedgerException], int]] = [
    (PortfolioNotFoundError, 404),
    (PositionNotFoundError, 404),
    (DuplicatePortfolioError, 409),
    (ConcurrencyConflictError, 409),
    (ValidationError, 400),
    (PortfolioError, 400),
    (QuoteProviderError, 502),
]


def status_for(error: LedgerException) -> int:
    """Map a ledger error to its HTTP status code."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


async def ledger_exception_handler(request: Request, exc: LedgerException) -> JSONResponse:
    """Render ledger errors as ``{error, message, details}``."""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


def create_app(
    settings: LedgerSettings | None = None,
    store: ILedgerStore | None = None,
    quote_provider: IQuoteProvider | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        settings: Runtime settings; read from ``LEDGER_*`` variables when omitted
        store: Ledger storage; a fresh in-memory store when omitted
        quote_provider: Upstream quote source; an empty static provider when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings if settings is not None else LedgerSettings.from_env()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Portfolio Ledger API",
        version=__version__,
        description="Paper and real portfolio ledger with valuation and performance reporting",
    )
    app.state.settings = settings
    app.state.services = LedgerServices.build(
        settings,
        store if store is not None else InMemoryLedgerStore(),
        quote_provider if quote_provider is not None else StaticQuoteProvider(),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-User-Id"],
    )
    app.add_exception_handler(LedgerException, ledger_exception_handler)
    app.include_router(portfolios.router, prefix="/api/portfolios", tags=["portfolios"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {"message": "Portfolio Ledger API", "version": __version__, "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    logger.info(
        f"Portfolio ledger API ready (commission policy: {settings.commission_policy.value})"
    )
    return app

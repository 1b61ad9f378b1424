"""FastAPI application for the exchange.

Every ExchangeError is turned into a JSON error body with a status code
chosen by error class; anything else is a genuine 500.
"""

import os

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from exchange import __version__
from exchange.api.endpoints import router
from exchange.errors import (
    ExchangeBusy,
    ExchangeError,
    InvalidPrice,
    PairAlreadyExists,
    PairNotFound,
    PriceFeedNotFound,
    ReentrantCall,
    Unauthorized,
)
from exchange.log import configure_logging
from exchange.models.api import ErrorResponse

logger = structlog.get_logger()

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("EXCHANGE_HOST", "0.0.0.0")
PORT = int(os.environ.get("EXCHANGE_PORT", "8000"))
DEBUG = os.environ.get("EXCHANGE_DEBUG", "false").lower() in ("true", "1", "yes")

# Status codes by error class; anything else derived from ExchangeError is a 400
ERROR_STATUS: dict[type[ExchangeError], int] = {
    PairNotFound: 404,
    PriceFeedNotFound: 404,
    PairAlreadyExists: 409,
    ReentrantCall: 409,
    Unauthorized: 403,
    InvalidPrice: 502,
    ExchangeBusy: 503,
}

app = FastAPI(
    title="Constant Product Exchange",
    description="AMM exchange with price-oracle USD conversion",
    version=__version__,
)


def status_for(error: ExchangeError) -> int:
    """HTTP status code for an exchange error."""
    for error_class, status in ERROR_STATUS.items():
        if isinstance(error, error_class):
            return status
    return 400


@app.exception_handler(ExchangeError)
async def exchange_error_handler(request: Request, exc: ExchangeError) -> JSONResponse:
    """Render an ExchangeError as an ErrorResponse."""
    status = status_for(exc)
    logger.info(
        "request_failed",
        path=request.url.path,
        error=exc.code,
        status=status,
    )
    body = ErrorResponse(error=exc.code, detail=str(exc))
    return JSONResponse(status_code=status, content=body.model_dump())


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the exchange API server.

    Configuration via environment variables:
    - EXCHANGE_HOST: Host to bind to (default: 0.0.0.0)
    - EXCHANGE_PORT: Port to bind to (default: 8000)
    - EXCHANGE_DEBUG: Enable debug logging and reload (default: false)
    - EXCHANGE_OWNER, EXCHANGE_CONVERSION_MODE, ...: see ExchangeConfig.from_env
    """
    configure_logging(debug=DEBUG)
    uvicorn.run(
        "exchange.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()

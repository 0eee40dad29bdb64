"""FastAPI application main module.

This module builds the FastAPI application for the ProdRec prediction
service: health and status endpoints, error handlers, request logging, and
model loading at startup.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from prodrec import __version__
from prodrec.api.exceptions import InvalidRequestError, ModelNotLoadedError, ProdRecAPIException
from prodrec.api.logging_config import RequestLoggingMiddleware, setup_logging
from prodrec.api.metrics import metrics_service
from prodrec.api.routes import predict
from prodrec.api.state import ModelState
from prodrec.recommender.config import ServiceSettings

logger = logging.getLogger(__name__)


def _error_response(exc: ProdRecAPIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "type": type(exc).__name__,
            "details": jsonable_encoder(exc.details),
        },
    )


def create_app(settings: Optional[ServiceSettings] = None) -> FastAPI:
    """Create the prediction service.

    Args:
        settings: Service settings. Read from PRODREC_* environment
            variables when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or ServiceSettings.from_env()
    model_state = ModelState(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting ProdRec prediction service...")
        try:
            model_state.load()
        except ModelNotLoadedError as e:
            # Serve anyway; /predict answers 503 until a model is available
            logger.warning(f"Starting without a model: {e.message}")
        yield
        logger.info("Shutting down ProdRec prediction service")

    app = FastAPI(
        title="ProdRec API",
        description="Product rating prediction service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.model_state = model_state
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(predict.router)

    @app.exception_handler(ProdRecAPIException)
    async def handle_api_exception(request: Request, exc: ProdRecAPIException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(exc.message, extra={"path": str(request.url.path), "details": exc.details})
        else:
            logger.warning(exc.message, extra={"path": str(request.url.path)})
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(InvalidRequestError(jsonable_encoder(exc.errors())))

    @app.get("/ping")
    def ping() -> Dict[str, str]:
        """Health check endpoint.

        Example:
            >>> response = client.get("/ping")
            >>> assert response.json() == {"status": "ok"}
        """
        return {"status": "ok"}

    @app.get("/status")
    def status() -> Dict[str, Any]:
        """Report whether a model is loaded and what it covers."""
        return model_state.status()

    @app.get("/metrics")
    def metrics() -> Dict[str, Any]:
        return metrics_service.get_metrics()

    return app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = ServiceSettings.from_env()
    setup_logging(settings.log_level)

    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()

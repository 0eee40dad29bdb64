"""Prediction endpoints for the ProdRec API.

This module scores a single (user, product) pair against the loaded model.
"""

import logging
import queue
import time
from typing import Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from prodrec.api.exceptions import (
    PredictionError,
    ProdRecAPIException,
    UnseenIdentifierHTTPError,
)
from prodrec.api.metrics import metrics_service
from prodrec.api.state import ModelState
from prodrec.recommender.exceptions import UnseenIdentifierError
from prodrec.recommender.infer import find_unseen

# Configure module logger
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(tags=["predictions"])

# Seconds a request waits for a free scorer
CHECKOUT_TIMEOUT = 5.0


class PredictionRequest(BaseModel):
    """Request body for a single prediction."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, description="User identifier")
    product_id: str = Field(..., alias="productId", min_length=1, description="Product identifier")


class PredictionResponse(BaseModel):
    """Predicted score for the requested pair."""

    score: float = Field(..., description="Predicted rating, not clamped")


def get_model_state(request: Request) -> ModelState:
    return request.app.state.model_state


@router.post("/predict", response_model=PredictionResponse)
def predict(payload: PredictionRequest, request: Request) -> PredictionResponse:
    """Score a product for a user.

    Example:
        POST /predict {"userId": "AGYLPKPZHVYKKZHOTHCTYVEDAJ4A", "productId": "B01486F4G6"}
        Returns {"score": 4.12}.
    """
    pool = get_model_state(request).get_pool()
    start_time = time.time()

    try:
        with pool.checkout(timeout=CHECKOUT_TIMEOUT) as scorer:
            score = scorer.predict(payload.user_id, payload.product_id)
    except UnseenIdentifierError as e:
        metrics_service.record_error()
        logger.warning(
            "Rejected unseen identifier",
            extra={"user_id": payload.user_id, "product_id": payload.product_id, "unseen": list(e.unseen)},
        )
        raise UnseenIdentifierHTTPError(payload.user_id, payload.product_id, e.unseen)
    except queue.Empty:
        metrics_service.record_error()
        raise ProdRecAPIException(
            "All scorers are busy, try again later",
            status_code=503,
            details={"pool_size": pool.size},
        )
    except Exception as e:
        metrics_service.record_error()
        logger.error(
            f"Error scoring product {payload.product_id} for user {payload.user_id}: {e}",
            exc_info=True,
        )
        raise PredictionError(payload.user_id, payload.product_id, e) from e

    latency_ms = (time.time() - start_time) * 1000
    fallback = bool(find_unseen(pool.model, payload.user_id, payload.product_id))
    metrics_service.record_prediction(latency_ms, fallback=fallback)

    logger.info(
        "Prediction served",
        extra={
            "user_id": payload.user_id,
            "product_id": payload.product_id,
            "score": score,
            "fallback": fallback,
            "latency_ms": round(latency_ms, 2),
        },
    )

    return PredictionResponse(score=score)


@router.post("/reload-model")
def reload_model(request: Request) -> Dict[str, str]:
    """Reload the model from disk.

    Useful when a new model has been trained and needs to be served
    without restarting the server.
    """
    logger.info("Reloading model...")
    get_model_state(request).load()
    return {"status": "Model reloaded successfully"}

"""Custom exceptions for the ProdRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class ProdRecAPIException(Exception):
    """Base exception for ProdRec API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class ModelNotLoadedError(ProdRecAPIException):
    """Raised when no model is available to score with."""

    def __init__(self, model_path: str, details: Optional[Dict[str, Any]] = None):
        message = f"Model not loaded from '{model_path}'. Please train a model first."
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"model_path": model_path},
        )


class UnseenIdentifierHTTPError(ProdRecAPIException):
    """Raised when a user or product is unknown and the service rejects them."""

    def __init__(self, user_id: str, product_id: str, unseen: Dict[str, str]):
        message = (
            f"Identifier(s) {sorted(unseen)} not found in training data. "
            "Cannot score this pair."
        )
        super().__init__(
            message=message,
            status_code=404,
            details={"user_id": user_id, "product_id": product_id, "unseen": sorted(unseen)},
        )


class PredictionError(ProdRecAPIException):
    """Raised when scoring fails."""

    def __init__(self, user_id: str, product_id: str, error: Exception):
        message = f"Failed to score product {product_id} for user {user_id}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "user_id": user_id,
                "product_id": product_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class InvalidRequestError(ProdRecAPIException):
    """Raised for request bodies that fail validation."""

    def __init__(self, errors: Any):
        super().__init__(
            message="Invalid request body",
            status_code=400,
            details={"errors": errors},
        )

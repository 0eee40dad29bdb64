"""Exceptions raised by the training and prediction pipeline."""

from typing import Any, Dict, Optional


class ProdRecError(Exception):
    """Base exception for ProdRec errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ColumnConfigError(ProdRecError, ValueError):
    """Raised when configured column positions don't fit the CSV header."""


class SplitError(ProdRecError, ValueError):
    """Raised when a train/test split would leave one side empty."""


class TrainingError(ProdRecError):
    """Raised when the training set is empty or degenerate."""


class UnseenIdentifierError(ProdRecError, KeyError):
    """Raised when a user or product was not seen during training."""

    def __init__(self, user_id: str, product_id: str, unseen: Dict[str, str]):
        fields = ", ".join(f"{name}={value!r}" for name, value in unseen.items())
        super().__init__(
            f"Identifier(s) not present in training data: {fields}",
            details={"user_id": user_id, "product_id": product_id, "unseen": list(unseen)},
        )
        self.user_id = user_id
        self.product_id = product_id
        self.unseen = unseen

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.message


class ModelStoreError(ProdRecError, OSError):
    """Raised when a model file can't be read back."""

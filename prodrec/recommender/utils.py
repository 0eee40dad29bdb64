"""Model store for trained rating models.

Saves a trained model together with its training schema to a single joblib
file, and loads it back for prediction.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import joblib

from prodrec.recommender.exceptions import ModelStoreError
from prodrec.recommender.model import RatingModel

# Configure module logger
logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = 1

# Column dtypes of the data a model is trained on
DEFAULT_SCHEMA: Dict[str, str] = {
    "product_id": "string",
    "user_id": "string",
    "label": "float32",
}


def save_model(
    model: RatingModel,
    model_path: str,
    schema: Optional[Dict[str, str]] = None,
    create_dirs: bool = False,
) -> Path:
    """Save a trained model and its schema to one file.

    Args:
        model: Trained RatingModel to save.
        model_path: Destination file path.
        schema: Column schema of the training data (default: DEFAULT_SCHEMA).
        create_dirs: If True, create missing parent directories.

    Returns:
        Path of the written file.

    Raises:
        FileNotFoundError: If the parent directory does not exist and
            create_dirs is False.
        OSError: If the file can't be written.

    Example:
        >>> save_model(model, "models/product_recommender_model.joblib", create_dirs=True)
    """
    path = Path(model_path)

    if create_dirs:
        path.parent.mkdir(parents=True, exist_ok=True)
    elif not path.parent.exists():
        raise FileNotFoundError(f"Model directory does not exist: {path.parent}")

    payload = {
        "format_version": MODEL_FORMAT_VERSION,
        "model": model,
        "schema": dict(schema or DEFAULT_SCHEMA),
    }

    logger.info(f"Saving model to {path}")
    joblib.dump(payload, path)
    logger.info(
        "Saved model",
        extra={
            "model_path": str(path),
            "num_users": model.n_users,
            "num_products": model.n_products,
            "rank": model.rank,
        },
    )

    return path


def load_model_with_schema(model_path: str) -> Tuple[RatingModel, Dict[str, str]]:
    """Load a model file written by save_model.

    Args:
        model_path: Path to the model file.

    Returns:
        Tuple of (model, schema).

    Raises:
        FileNotFoundError: If the model file does not exist.
        ModelStoreError: If the file is corrupted or not a model file.
    """
    path = Path(model_path)
    if not path.is_file():
        raise FileNotFoundError(f"Model file not found: {model_path}")

    logger.info(f"Loading model from {path}")

    try:
        payload: Any = joblib.load(path)
    except Exception as e:
        raise ModelStoreError(f"Failed to read model file {model_path}: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("model"), RatingModel):
        raise ModelStoreError(f"Not a ProdRec model file: {model_path}")

    version = payload.get("format_version")
    if version != MODEL_FORMAT_VERSION:
        raise ModelStoreError(
            f"Unsupported model format version {version} in {model_path}"
        )

    model = payload["model"]
    logger.info(
        "Loaded model",
        extra={
            "model_path": str(path),
            "num_users": model.n_users,
            "num_products": model.n_products,
            "rank": model.rank,
        },
    )

    return model, payload.get("schema", {})


def load_model(model_path: str) -> RatingModel:
    """Load a trained model, discarding its schema."""
    model, _ = load_model_with_schema(model_path)
    return model


def check_model_exists(model_path: str) -> bool:
    """Check if a model file exists.

    Args:
        model_path: Path where the model file should be.

    Returns:
        True if the model file exists, False otherwise.
    """
    return Path(model_path).is_file()

"""Evaluation of a trained rating model on held-out data."""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, r2_score

from prodrec.recommender.model import RatingModel

# Configure module logger
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Metrics:
    """Regression quality of a model on a held-out set.

    Attributes:
        rmse: Root mean squared error.
        r_squared: Coefficient of determination, nan for fewer than 2 samples.
        n_samples: Number of scored records.
        n_unseen: Records whose user or product was not seen in training;
            these are scored with the model's global mean.
    """

    rmse: float
    r_squared: float
    n_samples: int
    n_unseen: int

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def predict_dataset(model: RatingModel, dataset: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray]:
    """Score every record of a dataset.

    Pairs with an identifier outside the training vocabulary get the model's
    global mean.

    Returns:
        Tuple of (scores, known) where known flags records whose user and
        product were both seen in training.
    """
    user_idx = dataset["user_id"].map(model.user_id_to_idx)
    product_idx = dataset["product_id"].map(model.product_id_to_idx)
    known = (user_idx.notna() & product_idx.notna()).to_numpy()

    scores = np.full(len(dataset), model.global_mean, dtype=np.float64)
    if known.any():
        scores[known] = model.score_many(
            user_idx[known].astype(int).to_numpy(),
            product_idx[known].astype(int).to_numpy(),
        )
    return scores, known


def evaluate_model(model: RatingModel, test: pd.DataFrame) -> Metrics:
    """Compute RMSE and R squared of a model over a test set.

    Args:
        model: Trained RatingModel.
        test: Held-out records with product_id, user_id and label columns.

    Returns:
        Metrics for the test set.

    Raises:
        ValueError: If the test set is empty.
    """
    if test.empty:
        raise ValueError("Cannot evaluate on an empty test set")

    labels = test["label"].to_numpy(dtype=np.float64)
    scores, known = predict_dataset(model, test)
    n_unseen = int((~known).sum())

    rmse = math.sqrt(mean_squared_error(labels, scores))
    r_squared = float(r2_score(labels, scores)) if len(labels) >= 2 else float("nan")

    metrics = Metrics(rmse=rmse, r_squared=r_squared, n_samples=len(labels), n_unseen=n_unseen)

    logger.info("Evaluation completed", extra=metrics.as_dict())
    if n_unseen:
        logger.warning(f"{n_unseen} of {len(labels)} test records had unseen identifiers")

    return metrics

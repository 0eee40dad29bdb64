"""Matrix factorization model training module.

This module fits a rating model over (user, product) pairs using Truncated
SVD on the mean-centered user-product rating matrix, and runs the complete
batch pipeline: load, split, fit, evaluate, save.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix
from sklearn.decomposition import TruncatedSVD

from prodrec.recommender.config import (
    DEFAULT_N_ITERATIONS,
    DEFAULT_RANDOM_STATE,
    DEFAULT_RANK,
    TrainingConfig,
)
from prodrec.recommender.data import LoadResult, load_ratings, split_dataset
from prodrec.recommender.evaluate import Metrics, evaluate_model
from prodrec.recommender.exceptions import TrainingError, UnseenIdentifierError
from prodrec.recommender.infer import is_recommended, predict_score
from prodrec.recommender.model import RatingModel
from prodrec.recommender.utils import DEFAULT_SCHEMA, save_model

# Configure module logger
logger = logging.getLogger(__name__)

MIN_DISTINCT_IDS = 2


@dataclass
class TrainingResult:
    """Outcome of a training run."""

    model: RatingModel
    metrics: Metrics
    load_result: LoadResult
    n_train: int
    n_test: int
    model_path: Path


def build_encodings(train: pd.DataFrame) -> Tuple[Dict[str, int], Dict[str, int]]:
    """Build identifier to index dictionaries from the training data.

    Indices follow the sorted order of the distinct identifiers, so the same
    training data always yields the same encoding.
    """
    user_ids = sorted(train["user_id"].unique())
    product_ids = sorted(train["product_id"].unique())

    user_id_to_idx = {user_id: idx for idx, user_id in enumerate(user_ids)}
    product_id_to_idx = {product_id: idx for idx, product_id in enumerate(product_ids)}

    return user_id_to_idx, product_id_to_idx


def build_rating_matrix(
    train: pd.DataFrame,
    user_id_to_idx: Dict[str, int],
    product_id_to_idx: Dict[str, int],
    global_mean: float,
) -> csr_matrix:
    """Build the sparse user-product matrix of mean-centered ratings.

    Repeated (user, product) pairs are averaged before centering.
    """
    pairs = train.groupby(["user_id", "product_id"], sort=False)["label"].mean().reset_index()

    row_indices = pairs["user_id"].map(user_id_to_idx).to_numpy()
    col_indices = pairs["product_id"].map(product_id_to_idx).to_numpy()
    data = (pairs["label"].to_numpy(dtype=np.float64) - global_mean).astype(np.float32)

    matrix = csr_matrix(
        (data, (row_indices, col_indices)),
        shape=(len(user_id_to_idx), len(product_id_to_idx)),
        dtype=np.float32,
    )

    n_cells = matrix.shape[0] * matrix.shape[1]
    logger.info(f"Rating matrix shape: {matrix.shape}")
    logger.info(f"Rating matrix density: {len(pairs) / n_cells:.4%}")

    return matrix


def fit_model(
    train: pd.DataFrame,
    rank: int = DEFAULT_RANK,
    n_iter: int = DEFAULT_N_ITERATIONS,
    random_state: Optional[int] = DEFAULT_RANDOM_STATE,
) -> RatingModel:
    """Fit a matrix factorization rating model.

    Encodes the user and product identifiers, then factorizes the
    mean-centered rating matrix with Truncated SVD. The user factors absorb
    the singular values, so a score is the global mean plus the dot product
    of a user row and a product row.

    Args:
        train: Training records with product_id, user_id and label columns.
        rank: Rank of the latent factor matrices. Reduced to
            min(n_users, n_products) - 1 if too large for the data.
        n_iter: Number of iterations for the randomized SVD solver.
        random_state: Random seed for reproducibility.

    Returns:
        Fitted RatingModel.

    Raises:
        TrainingError: If the training set is empty, or has fewer than two
            distinct users or products.
        ValueError: If rank or n_iter is not positive.
    """
    if rank < 1:
        raise ValueError(f"rank must be >= 1, got {rank}")
    if n_iter < 1:
        raise ValueError(f"n_iter must be >= 1, got {n_iter}")

    if train.empty:
        raise TrainingError("Cannot train on an empty training set")

    n_users = train["user_id"].nunique()
    n_products = train["product_id"].nunique()

    if n_users < MIN_DISTINCT_IDS or n_products < MIN_DISTINCT_IDS:
        raise TrainingError(
            f"Training set needs at least {MIN_DISTINCT_IDS} distinct users and "
            f"products, got {n_users} users and {n_products} products",
            details={"n_users": n_users, "n_products": n_products},
        )

    max_rank = min(n_users, n_products) - 1
    if rank > max_rank:
        logger.warning(
            f"Requested rank ({rank}) is too large for "
            f"matrix size ({n_users}x{n_products}). "
            f"Adjusting to {max_rank}."
        )
        rank = max_rank

    global_mean = float(train["label"].astype(np.float64).mean())
    user_id_to_idx, product_id_to_idx = build_encodings(train)
    matrix = build_rating_matrix(train, user_id_to_idx, product_id_to_idx, global_mean)

    logger.info(f"Training factorization with rank {rank}")
    logger.info(f"Random state: {random_state}, Iterations: {n_iter}")

    svd = TruncatedSVD(
        n_components=rank,
        n_iter=n_iter,
        random_state=random_state,
    )
    user_factors = svd.fit_transform(matrix)
    product_factors = svd.components_.T

    logger.info("Model training completed")
    logger.info(f"Explained variance ratio: {svd.explained_variance_ratio_.sum():.4f}")

    return RatingModel(
        user_id_to_idx=user_id_to_idx,
        product_id_to_idx=product_id_to_idx,
        user_factors=np.ascontiguousarray(user_factors, dtype=np.float64),
        product_factors=np.ascontiguousarray(product_factors, dtype=np.float64),
        global_mean=global_mean,
        rank=rank,
        n_iter=n_iter,
        random_state=random_state,
    )


def _sample_prediction(model: RatingModel, config: TrainingConfig, train: pd.DataFrame) -> None:
    """Log one prediction, the way a trained model is smoke tested by hand."""
    user_id = config.sample_user_id or train["user_id"].iloc[0]
    product_id = config.sample_product_id or train["product_id"].iloc[0]

    try:
        score = predict_score(model, user_id, product_id)
    except UnseenIdentifierError as e:
        logger.warning(f"Sample prediction skipped: {e}")
        return

    verdict = "is" if is_recommended(score, config.recommend_threshold) else "is not"
    logger.info(f"Product {product_id} {verdict} recommended for user {user_id} (score {score:.3f})")


def train_and_evaluate(config: TrainingConfig) -> TrainingResult:
    """Run the complete training pipeline.

    Loads and cleans the CSV, splits it, fits the model on the training
    side, evaluates it on the held-out side, logs a sample prediction and
    saves the model.

    Args:
        config: Training configuration.

    Returns:
        TrainingResult with the model, metrics and bookkeeping.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If the configuration or data can't be split.
        TrainingError: If the training set is empty or degenerate.
        OSError: If the model can't be saved.

    Example:
        >>> result = train_and_evaluate(TrainingConfig(csv_path="data/amazon.csv"))
        >>> print(f"RMSE: {result.metrics.rmse:.3f}")
    """
    logger.info("=" * 60)
    logger.info("Starting matrix factorization model training")
    logger.info("=" * 60)

    try:
        config.validate()

        # Step 1: Load and clean the rating data
        load_result = load_ratings(config.csv_path, config.columns)
        if load_result.n_records == 0:
            raise TrainingError(f"No valid rating records in {config.csv_path}")

        # Step 2: Hold out a test set
        train, test = split_dataset(
            load_result.dataset,
            test_fraction=config.test_fraction,
            random_state=config.random_state,
        )

        # Step 3: Fit the model
        model = fit_model(
            train,
            rank=config.rank,
            n_iter=config.n_iter,
            random_state=config.random_state,
        )

        # Step 4: Evaluate on held-out data
        logger.info("=============== Evaluating the model ===============")
        metrics = evaluate_model(model, test)
        logger.info(f"Root Mean Squared Error : {metrics.rmse}")
        logger.info(f"RSquared: {metrics.r_squared}")

        # Step 5: Single prediction
        logger.info("=============== Making a prediction ===============")
        _sample_prediction(model, config, train)

        # Step 6: Save the model
        logger.info("=============== Saving the model to a file ===============")
        model_path = save_model(model, config.model_path, schema=DEFAULT_SCHEMA, create_dirs=True)

        logger.info("=" * 60)
        logger.info("Training completed successfully!")
        logger.info("=" * 60)

        return TrainingResult(
            model=model,
            metrics=metrics,
            load_result=load_result,
            n_train=len(train),
            n_test=len(test),
            model_path=model_path,
        )

    except Exception as e:
        logger.error(f"Training failed: {e}", exc_info=True)
        raise

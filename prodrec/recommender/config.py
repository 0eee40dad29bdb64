"""Configuration objects for training and serving.

Everything the pipeline needs is carried by these dataclasses and passed
explicitly to the loader, splitter and trainer. There is no shared global
context.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

# Column positions in the Amazon product review export
DEFAULT_PRODUCT_ID_COL = 0
DEFAULT_LABEL_COL = 6
DEFAULT_USER_ID_COL = 9

# Training defaults
DEFAULT_TEST_FRACTION = 0.2
DEFAULT_RANK = 100
DEFAULT_N_ITERATIONS = 20
DEFAULT_RANDOM_STATE = 42
DEFAULT_RECOMMEND_THRESHOLD = 3.5
DEFAULT_MODEL_PATH = "models/product_recommender_model.joblib"

# Serving defaults
DEFAULT_POOL_SIZE = 4
DEFAULT_SERVICE_POLICY = "global_mean"
UNSEEN_POLICIES = ("reject", "global_mean", "zero")


@dataclass
class ColumnConfig:
    """Fixed column positions of the rating fields in the source CSV.

    Attributes:
        product_id_col: Index of the product identifier column.
        label_col: Index of the rating column.
        user_id_col: Index of the user identifier column.
        expected_headers: Optional header names expected at each position,
            keyed by field name. Used only to warn about reordered files.
    """

    product_id_col: int = DEFAULT_PRODUCT_ID_COL
    label_col: int = DEFAULT_LABEL_COL
    user_id_col: int = DEFAULT_USER_ID_COL
    expected_headers: Optional[Dict[str, str]] = field(
        default_factory=lambda: {
            "product_id": "product_id",
            "label": "rating",
            "user_id": "user_id",
        }
    )

    def positions(self) -> Dict[str, int]:
        return {
            "product_id": self.product_id_col,
            "label": self.label_col,
            "user_id": self.user_id_col,
        }

    def max_index(self) -> int:
        return max(self.positions().values())

    def validate(self) -> None:
        positions = self.positions()
        for name, index in positions.items():
            if index < 0:
                raise ValueError(f"Column index for {name} must be >= 0, got {index}")
        if len(set(positions.values())) != len(positions):
            raise ValueError(f"Column indices must be distinct, got {positions}")


@dataclass
class TrainingConfig:
    """Configuration for one training run.

    Attributes:
        csv_path: Path to the rating CSV.
        model_path: Where the trained model file is written.
        test_fraction: Fraction of rows held out for evaluation, in (0, 1).
        rank: Rank of the latent factor matrices.
        n_iter: Number of iterations for the factorization solver.
        random_state: Seed used by the split and the solver.
        columns: Column positions in the CSV.
        recommend_threshold: Score above which a product counts as
            recommended in the sample prediction.
        sample_user_id: Optional user for a sample prediction after training.
        sample_product_id: Optional product for the sample prediction.
    """

    csv_path: str
    model_path: str = DEFAULT_MODEL_PATH
    test_fraction: float = DEFAULT_TEST_FRACTION
    rank: int = DEFAULT_RANK
    n_iter: int = DEFAULT_N_ITERATIONS
    random_state: int = DEFAULT_RANDOM_STATE
    columns: ColumnConfig = field(default_factory=ColumnConfig)
    recommend_threshold: float = DEFAULT_RECOMMEND_THRESHOLD
    sample_user_id: Optional[str] = None
    sample_product_id: Optional[str] = None

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: If any setting is out of range.
        """
        if not 0.0 < self.test_fraction < 1.0:
            raise ValueError(
                f"test_fraction must be in (0, 1), got {self.test_fraction}"
            )
        if self.rank < 1:
            raise ValueError(f"rank must be >= 1, got {self.rank}")
        if self.n_iter < 1:
            raise ValueError(f"n_iter must be >= 1, got {self.n_iter}")
        self.columns.validate()


@dataclass
class ServiceSettings:
    """Settings for the prediction API."""

    model_path: str = DEFAULT_MODEL_PATH
    pool_size: int = DEFAULT_POOL_SIZE
    unseen_policy: str = DEFAULT_SERVICE_POLICY
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check value ranges.

        Raises:
            ValueError: If the policy is unknown or the pool size is < 1.
        """
        if self.unseen_policy not in UNSEEN_POLICIES:
            raise ValueError(
                f"unseen_policy (PRODREC_UNSEEN_POLICY) must be one of {UNSEEN_POLICIES}, "
                f"got {self.unseen_policy!r}"
            )
        if self.pool_size < 1:
            raise ValueError(
                f"pool_size (PRODREC_POOL_SIZE) must be >= 1, got {self.pool_size}"
            )

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        """Build settings from PRODREC_* environment variables."""
        return cls(
            model_path=os.environ.get("PRODREC_MODEL_PATH", DEFAULT_MODEL_PATH),
            pool_size=int(os.environ.get("PRODREC_POOL_SIZE", DEFAULT_POOL_SIZE)),
            unseen_policy=os.environ.get(
                "PRODREC_UNSEEN_POLICY", DEFAULT_SERVICE_POLICY
            ),
            log_level=os.environ.get("PRODREC_LOG_LEVEL", "INFO"),
        )

"""Trained rating model.

A RatingModel bundles the identifier encodings learned from the training
data with the latent factor matrices produced by the factorization.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np


@dataclass(frozen=True)
class RatingModel:
    """Matrix factorization model over (user, product) pairs.

    Predicts a rating as ``global_mean + user_factors[u] . product_factors[p]``.

    Attributes:
        user_id_to_idx: Maps user identifiers to rows of user_factors.
        product_id_to_idx: Maps product identifiers to rows of product_factors.
        user_factors: Array of shape (n_users, rank).
        product_factors: Array of shape (n_products, rank).
        global_mean: Mean training rating, added back to every score.
        rank: Rank actually used by the factorization.
        n_iter: Solver iterations used for the fit.
        random_state: Seed used for the fit.
    """

    user_id_to_idx: Dict[str, int]
    product_id_to_idx: Dict[str, int]
    user_factors: np.ndarray
    product_factors: np.ndarray
    global_mean: float
    rank: int
    n_iter: int
    random_state: Optional[int] = None

    @property
    def n_users(self) -> int:
        return len(self.user_id_to_idx)

    @property
    def n_products(self) -> int:
        return len(self.product_id_to_idx)

    def has_user(self, user_id: str) -> bool:
        return user_id in self.user_id_to_idx

    def has_product(self, product_id: str) -> bool:
        return product_id in self.product_id_to_idx

    def score(self, user_idx: int, product_idx: int) -> float:
        """Score an encoded (user, product) pair."""
        dot = float(np.dot(self.user_factors[user_idx], self.product_factors[product_idx]))
        return self.global_mean + dot

    def score_many(self, user_idx: np.ndarray, product_idx: np.ndarray) -> np.ndarray:
        """Score arrays of encoded pairs in one pass."""
        dots = np.einsum(
            "ij,ij->i", self.user_factors[user_idx], self.product_factors[product_idx]
        )
        return self.global_mean + dots

    def predict(self, user_id: str, product_id: str) -> float:
        """Score a raw (user, product) pair.

        Raises:
            KeyError: If either identifier was not seen during training.
        """
        return self.score(self.user_id_to_idx[user_id], self.product_id_to_idx[product_id])

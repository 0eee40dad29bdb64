"""Module for scoring (user, product) pairs.

Uses a trained model to predict the rating a user would give a product,
and provides a pool of scorer handles for concurrent serving.
"""

import logging
import queue
import time
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from prodrec.recommender.config import DEFAULT_RECOMMEND_THRESHOLD, UNSEEN_POLICIES
from prodrec.recommender.data import normalize_identifier
from prodrec.recommender.exceptions import UnseenIdentifierError
from prodrec.recommender.model import RatingModel

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_PREDICT_POLICY = "reject"


def find_unseen(model: RatingModel, user_id: str, product_id: str) -> Dict[str, str]:
    """Return the identifiers of a pair that the model has not seen, by field name."""
    unseen: Dict[str, str] = {}
    if not model.has_user(normalize_identifier(user_id)):
        unseen["user_id"] = user_id
    if not model.has_product(normalize_identifier(product_id)):
        unseen["product_id"] = product_id
    return unseen


def _fallback_score(model: RatingModel, unseen_policy: str) -> float:
    if unseen_policy == "global_mean":
        return float(model.global_mean)
    return 0.0


def predict_score(
    model: RatingModel,
    user_id: str,
    product_id: str,
    unseen_policy: str = DEFAULT_PREDICT_POLICY,
) -> float:
    """Predict the score a user would give a product.

    Identifiers are normalized the same way as when the training data was
    loaded. The score is not clamped to the rating scale.

    Args:
        model: Trained RatingModel.
        user_id: Raw user identifier.
        product_id: Raw product identifier.
        unseen_policy: What to do when either identifier was not seen in
            training: "reject" raises, "global_mean" returns the mean
            training rating, "zero" returns 0.0.

    Returns:
        Predicted score.

    Raises:
        UnseenIdentifierError: If an identifier is unseen and the policy is
            "reject".
        ValueError: If unseen_policy is not a known policy.
    """
    if unseen_policy not in UNSEEN_POLICIES:
        raise ValueError(f"unseen_policy must be one of {UNSEEN_POLICIES}, got {unseen_policy!r}")

    unseen = find_unseen(model, user_id, product_id)

    if unseen:
        if unseen_policy == "reject":
            raise UnseenIdentifierError(user_id, product_id, unseen)
        logger.debug(
            "Identifier not in training data, using fallback score",
            extra={"unseen": list(unseen), "strategy": unseen_policy},
        )
        return _fallback_score(model, unseen_policy)

    return model.predict(normalize_identifier(user_id), normalize_identifier(product_id))


def is_recommended(score: float, threshold: float = DEFAULT_RECOMMEND_THRESHOLD) -> bool:
    """Whether a score is high enough to recommend the product."""
    return round(score, 1) > threshold


class Scorer:
    """Scoring handle bound to one model.

    Handles are checked out of a ScorerPool, one per concurrent request.
    """

    def __init__(self, model: RatingModel, unseen_policy: str = DEFAULT_PREDICT_POLICY):
        self.model = model
        self.unseen_policy = unseen_policy

    def predict(self, user_id: str, product_id: str) -> float:
        return predict_score(self.model, user_id, product_id, self.unseen_policy)


class ScorerPool:
    """Fixed-size pool of Scorer handles sharing one immutable model.

    Example:
        >>> pool = ScorerPool(model, size=4)
        >>> with pool.checkout() as scorer:
        ...     score = scorer.predict("user-1", "B01486F4G6")
    """

    def __init__(
        self,
        model: RatingModel,
        size: int = 4,
        unseen_policy: str = DEFAULT_PREDICT_POLICY,
    ):
        if size < 1:
            raise ValueError(f"Pool size must be >= 1, got {size}")
        if unseen_policy not in UNSEEN_POLICIES:
            raise ValueError(f"unseen_policy must be one of {UNSEEN_POLICIES}, got {unseen_policy!r}")

        self.model = model
        self.size = size
        self.unseen_policy = unseen_policy
        self._scorers: "queue.Queue[Scorer]" = queue.Queue(maxsize=size)
        for _ in range(size):
            self._scorers.put(Scorer(model, unseen_policy))

        logger.info(f"Initialized ScorerPool with {size} scorers, unseen_policy={unseen_policy}")

    @property
    def available(self) -> int:
        return self._scorers.qsize()

    @contextmanager
    def checkout(self, timeout: Optional[float] = None) -> Iterator[Scorer]:
        """Borrow a scorer for the duration of a with block.

        Args:
            timeout: Seconds to wait for a free scorer, or None to wait forever.

        Raises:
            queue.Empty: If no scorer became free within timeout.
        """
        start_time = time.time()
        scorer = self._scorers.get(timeout=timeout)
        wait_time = time.time() - start_time
        if wait_time > 0.1:
            logger.debug(
                "Waited for scorer",
                extra={"wait_time_ms": round(wait_time * 1000, 2)},
            )
        try:
            yield scorer
        finally:
            self._scorers.put(scorer)

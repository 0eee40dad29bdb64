"""Loaded model state shared by the API routes.

Holds the scorer pool built around the currently loaded model. A reload
builds a new pool and swaps it in; requests already holding the old pool
finish against the old model.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from prodrec.api.exceptions import ModelNotLoadedError
from prodrec.recommender.config import ServiceSettings
from prodrec.recommender.infer import ScorerPool
from prodrec.recommender.utils import check_model_exists, load_model

# Configure module logger
logger = logging.getLogger(__name__)


class ModelState:
    """Currently loaded model and its scorer pool."""

    def __init__(self, settings: ServiceSettings):
        self.settings = settings
        self.pool: Optional[ScorerPool] = None
        self.loaded_at: Optional[datetime] = None
        self._lock = threading.Lock()

    @property
    def model_loaded(self) -> bool:
        return self.pool is not None

    def load(self) -> ScorerPool:
        """Load the model from disk and replace the scorer pool.

        Raises:
            ModelNotLoadedError: If the model file is missing or unreadable.
        """
        model_path = self.settings.model_path

        if not check_model_exists(model_path):
            logger.error(f"Model not found at {model_path}")
            raise ModelNotLoadedError(model_path)

        try:
            model = load_model(model_path)
        except OSError as e:
            logger.error(f"Failed to load model: {e}", exc_info=True)
            raise ModelNotLoadedError(
                model_path,
                details={"model_path": model_path, "error": str(e), "error_type": type(e).__name__},
            ) from e

        pool = ScorerPool(
            model,
            size=self.settings.pool_size,
            unseen_policy=self.settings.unseen_policy,
        )

        with self._lock:
            self.pool = pool
            self.loaded_at = datetime.now(timezone.utc)

        logger.info("Model loaded successfully")
        return pool

    def get_pool(self) -> ScorerPool:
        """Return the scorer pool, loading the model on first use.

        Raises:
            ModelNotLoadedError: If no model can be loaded.
        """
        pool = self.pool
        if pool is None:
            pool = self.load()
        return pool

    def status(self) -> Dict[str, Any]:
        pool = self.pool
        return {
            "model_loaded": pool is not None,
            "model_path": self.settings.model_path,
            "timestamp_last_loaded": self.loaded_at.isoformat() if self.loaded_at else None,
            "num_users": pool.model.n_users if pool else 0,
            "num_products": pool.model.n_products if pool else 0,
            "rank": pool.model.rank if pool else 0,
            "pool_size": pool.size if pool else 0,
            "unseen_policy": self.settings.unseen_policy,
        }

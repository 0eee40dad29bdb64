"""Metrics service for tracking prediction performance.

Singleton service counting prediction calls and their latency.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters and latency tracking for prediction calls.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._reset_counters()
        self._initialized = True

    def _reset_counters(self) -> None:
        self._prediction_count = 0
        self._fallback_count = 0
        self._error_count = 0
        self._total_latency_ms = 0.0
        self._min_latency_ms = float("inf")
        self._max_latency_ms = 0.0

    def record_prediction(self, latency_ms: float, fallback: bool = False) -> None:
        """Record a served prediction.

        Args:
            latency_ms: Latency in milliseconds
            fallback: True if an unseen identifier forced a fallback score
        """
        with self._lock:
            self._prediction_count += 1
            if fallback:
                self._fallback_count += 1
            self._total_latency_ms += latency_ms
            self._min_latency_ms = min(self._min_latency_ms, latency_ms)
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def record_error(self) -> None:
        with self._lock:
            self._error_count += 1

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with prediction_count, fallback_count, error_count and
            average/min/max latency in milliseconds.
        """
        with self._lock:
            avg_latency = (
                self._total_latency_ms / self._prediction_count
                if self._prediction_count > 0
                else 0.0
            )

            return {
                "prediction_count": self._prediction_count,
                "fallback_count": self._fallback_count,
                "error_count": self._error_count,
                "average_latency_ms": round(avg_latency, 2),
                "min_latency_ms": round(self._min_latency_ms, 2) if self._min_latency_ms != float("inf") else 0.0,
                "max_latency_ms": round(self._max_latency_ms, 2),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._reset_counters()


# Global singleton instance
metrics_service = MetricsService()

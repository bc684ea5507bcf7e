"""
Per-model, per-day success counters for inference calls.

Buckets are keyed "<model>-<YYYY-MM-DD>" using the local calendar date at
the time of the call. They are never evicted; the map grows by one entry per
model per day for the lifetime of the process.
"""

import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Any

from ...core.logging import logger


@dataclass
class QualityBucket:
    total: int = 0
    successful: int = 0

    @property
    def success_rate(self) -> float:
        return self.successful / self.total if self.total else 0.0

    def formatted_rate(self) -> str:
        return f"{self.success_rate * 100:.1f}%"


class QualityTracker:
    def __init__(self, today: Callable[[], date] = date.today):
        self._today = today
        self._buckets: Dict[str, QualityBucket] = {}
        self._lock = threading.Lock()

    def bucket_key(self, model: str) -> str:
        return f"{model}-{self._today().isoformat()}"

    def record(self, model: str, success: bool) -> QualityBucket:
        key = self.bucket_key(model)
        with self._lock:
            bucket = self._buckets.setdefault(key, QualityBucket())
            bucket.total += 1
            if success:
                bucket.successful += 1
            snapshot = QualityBucket(bucket.total, bucket.successful)

        logger.info(
            f"Model: {model}, Success: {success}, Success Rate: {snapshot.formatted_rate()}",
            model_id=model,
            quality_bucket=key
        )
        return snapshot

    def report(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {
                key: {
                    "total": bucket.total,
                    "successful": bucket.successful,
                    "successRate": bucket.formatted_rate()
                }
                for key, bucket in self._buckets.items()
            }

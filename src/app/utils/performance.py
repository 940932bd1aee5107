import logging
import time
from typing import Optional

from prometheus_client import Histogram

logger = logging.getLogger(__name__)

# Prometheus Metrics
TASK_DURATION_SECONDS = Histogram(
    "inspection_task_duration_seconds",
    "Time spent performing a capture or upload task",
    ["task_name"]
)


class PerformanceMonitor:
    """Helper to measure the wall time of a pipeline step."""

    def __init__(self):
        self.start_time = 0.0
        self.end_time = 0.0

    def start(self):
        self.start_time = time.perf_counter()

    def stop(self):
        self.end_time = time.perf_counter()

    @property
    def duration(self):
        return self.end_time - self.start_time

    def report(self, label: str, count: Optional[int] = None) -> str:
        count_str = f" (N={count})" if count is not None else ""
        msg = f"[{label}]{count_str} Time: {self.duration:.4f}s"

        TASK_DURATION_SECONDS.labels(task_name=label).observe(self.duration)
        logger.debug(msg)
        return msg

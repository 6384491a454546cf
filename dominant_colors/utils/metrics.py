"""
Dominant Colors Metrics Collection
In-process counters and sample statistics for extraction requests.
"""
import time
from collections import defaultdict, Counter
from typing import Any, Dict, List, Optional
from threading import Lock

import numpy as np


def _summarize(samples: List[float]) -> Dict[str, float]:
    """Count, mean, extremes and p50/p95 of recorded samples."""
    values = np.asarray(samples, dtype=np.float64)
    p50, p95 = np.percentile(values, [50, 95])
    return {
        "count": int(values.size),
        "mean": float(values.mean()),
        "min": float(values.min()),
        "max": float(values.max()),
        "p50": float(p50),
        "p95": float(p95)
    }


class MetricsCollector:
    """Thread-safe in-process metrics for the extraction endpoint."""

    def __init__(self):
        self._lock = Lock()
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._palette_sizes: Dict[str, List[int]] = defaultdict(list)
        self._start_time = time.time()

    def increment_request_count(self, variant: str):
        """Count a request, in total and for its variant."""
        with self._lock:
            self._counters["extract_requests_total"] += 1
            self._counters[f"extract_requests_total_{variant}"] += 1

    def increment_failure_count(self, error_type: str):
        with self._lock:
            self._counters[f"extract_failed_total_{error_type}"] += 1

    def increment_empty_result_count(self):
        """Count extractions that found no qualifying colors."""
        with self._lock:
            self._counters["extract_empty_total"] += 1

    def record_timing(self, stage: str, duration_ms: float):
        with self._lock:
            self._timings[f"{stage}_duration_ms"].append(duration_ms)

    def record_palette_size(self, size: int, variant: str = "all"):
        """Record how many dominant colors an extraction returned."""
        with self._lock:
            self._palette_sizes[variant].append(size)

    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """Per-stage timing summaries in milliseconds."""
        with self._lock:
            return {stage: _summarize(timings) for stage, timings in self._timings.items() if timings}

    def get_palette_size_stats(self) -> Dict[str, Any]:
        """Palette size summary over all variants, plus one summary per variant."""
        with self._lock:
            by_variant = {variant: sizes for variant, sizes in self._palette_sizes.items() if sizes}
        if not by_variant:
            return {}

        every_size = [size for sizes in by_variant.values() for size in sizes]
        stats: Dict[str, Any] = _summarize(every_size)
        stats["by_variant"] = {variant: _summarize(sizes) for variant, sizes in by_variant.items()}
        return stats

    def get_uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def get_summary(self) -> Dict[str, Any]:
        """Complete metrics snapshot served by the metrics route."""
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "counters": self.get_counters(),
            "timing_stats": self.get_timing_stats(),
            "palette_size_stats": self.get_palette_size_stats()
        }

    def reset(self):
        """Clear all metrics (for testing)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._palette_sizes.clear()
            self._start_time = time.time()


# Process-wide collector
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset the process-wide metrics (for testing)."""
    global _metrics
    if _metrics is not None:
        _metrics.reset()

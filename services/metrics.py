"""Per-call telemetry for the model-backed stages.

Every semantic-matcher call and every image-generation call is recorded
under an operation name with its latency, status (``ok`` / ``error`` /
``timeout``), token usage, image count and estimated cost in USD.  The
collector is in-memory and per process; :meth:`MetricsCollector.snapshot`
returns the aggregate view.
"""

from __future__ import annotations

import math
import threading
from collections import defaultdict, deque

OP_SEMANTIC_MATCH = "semantic_match"
OP_IMAGE_GENERATION = "image_generation"

MAX_LATENCY_SAMPLES = 1000

IMAGE_COST_USD = 0.002  # per generated image (estimate)

# USD per 1K tokens (input, output).  First substring found in the model id wins.
_TOKEN_PRICES: tuple[tuple[str, float, float], ...] = (
    ("flash-lite", 0.000004, 0.000016),
    ("flash", 0.0000075, 0.00003),
    ("gemini", 0.00025, 0.0005),
    ("sonnet", 0.003, 0.015),
    ("haiku", 0.00025, 0.00125),
)
_DEFAULT_PRICE = (0.0000075, 0.00003)


def estimate_token_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Approximate USD cost of one model call."""
    name = (model or "").lower()
    price_in, price_out = next(
        ((p_in, p_out) for key, p_in, p_out in _TOKEN_PRICES if key in name),
        _DEFAULT_PRICE,
    )
    return (input_tokens / 1000) * price_in + (output_tokens / 1000) * price_out


def _percentile(values: list[float], p: float) -> float:
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0]
    ordered = sorted(values)
    pos = (len(ordered) - 1) * p
    lo = math.floor(pos)
    hi = math.ceil(pos)
    if lo == hi:
        return ordered[lo]
    frac = pos - lo
    return ordered[lo] * (1 - frac) + ordered[hi] * frac


def _empty_totals() -> dict[str, float]:
    return {"input_tokens": 0, "output_tokens": 0, "images": 0, "cost_usd": 0.0}


class MetricsCollector:
    """Thread-safe in-memory metrics collector."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._latencies: dict[str, deque[float]] = defaultdict(
            lambda: deque(maxlen=MAX_LATENCY_SAMPLES)
        )
        self._status: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._totals: dict[str, dict[str, float]] = defaultdict(_empty_totals)

    def record_call(
        self,
        *,
        operation: str,
        status: str,
        latency_ms: float,
        model: str = "",
        input_tokens: int = 0,
        output_tokens: int = 0,
        images: int = 0,
        cost_usd: float | None = None,
    ) -> float:
        """Record one call and return its estimated cost."""
        if cost_usd is None:
            cost_usd = estimate_token_cost(model, input_tokens, output_tokens)
            cost_usd += images * IMAGE_COST_USD

        with self._lock:
            self._latencies[operation].append(float(latency_ms))
            self._status[operation][status] += 1
            totals = self._totals[operation]
            totals["input_tokens"] += input_tokens
            totals["output_tokens"] += output_tokens
            totals["images"] += images
            totals["cost_usd"] += cost_usd
        return cost_usd

    def snapshot(self) -> dict:
        with self._lock:
            operations = {}
            for operation, status_map in self._status.items():
                total = sum(status_map.values())
                latencies = list(self._latencies.get(operation, ()))
                totals = self._totals[operation]
                operations[operation] = {
                    "count": total,
                    "success_rate": (status_map.get("ok", 0) / total) if total else 0.0,
                    "latency_p50_ms": round(_percentile(latencies, 0.5), 2),
                    "latency_p95_ms": round(_percentile(latencies, 0.95), 2),
                    "status_breakdown": dict(status_map),
                    "input_tokens": int(totals["input_tokens"]),
                    "output_tokens": int(totals["output_tokens"]),
                    "images": int(totals["images"]),
                    "estimated_cost_usd": round(totals["cost_usd"], 6),
                }
            return {"operations": operations}

    def reset(self) -> None:
        with self._lock:
            self._latencies.clear()
            self._status.clear()
            self._totals.clear()


_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics_collector

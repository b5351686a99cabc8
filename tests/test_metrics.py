"""Tests for services/metrics.py — per-call telemetry aggregation."""

import pytest

from services.metrics import (
    IMAGE_COST_USD,
    OP_IMAGE_GENERATION,
    OP_SEMANTIC_MATCH,
    MAX_LATENCY_SAMPLES,
    MetricsCollector,
    estimate_token_cost,
    get_metrics_collector,
)


def test_counts_and_status_breakdown():
    collector = MetricsCollector()
    collector.record_call(operation=OP_SEMANTIC_MATCH, status="ok", latency_ms=100)
    collector.record_call(operation=OP_SEMANTIC_MATCH, status="ok", latency_ms=300)
    collector.record_call(operation=OP_SEMANTIC_MATCH, status="timeout", latency_ms=60000)
    collector.record_call(operation=OP_SEMANTIC_MATCH, status="error", latency_ms=5)

    stats = collector.snapshot()["operations"][OP_SEMANTIC_MATCH]
    assert stats["count"] == 4
    assert stats["success_rate"] == 0.5
    assert stats["status_breakdown"] == {"ok": 2, "timeout": 1, "error": 1}


def test_latency_percentiles():
    collector = MetricsCollector()
    for latency in (10, 20, 30, 40, 50):
        collector.record_call(operation=OP_SEMANTIC_MATCH, status="ok", latency_ms=latency)

    stats = collector.snapshot()["operations"][OP_SEMANTIC_MATCH]
    assert stats["latency_p50_ms"] == 30.0
    assert stats["latency_p95_ms"] == 48.0


def test_latency_samples_are_capped():
    collector = MetricsCollector()
    for _ in range(MAX_LATENCY_SAMPLES + 10):
        collector.record_call(operation=OP_SEMANTIC_MATCH, status="ok", latency_ms=1)

    assert len(collector._latencies[OP_SEMANTIC_MATCH]) == MAX_LATENCY_SAMPLES
    assert collector.snapshot()["operations"][OP_SEMANTIC_MATCH]["count"] == MAX_LATENCY_SAMPLES + 10


def test_token_totals_and_cost():
    collector = MetricsCollector()
    cost = collector.record_call(
        operation=OP_SEMANTIC_MATCH,
        status="ok",
        latency_ms=50,
        model="gemini/gemini-2.5-flash-lite",
        input_tokens=2000,
        output_tokens=500,
    )

    assert cost == pytest.approx(2 * 0.000004 + 0.5 * 0.000016)
    stats = collector.snapshot()["operations"][OP_SEMANTIC_MATCH]
    assert stats["input_tokens"] == 2000
    assert stats["output_tokens"] == 500


def test_image_cost_per_image():
    collector = MetricsCollector()
    cost = collector.record_call(operation=OP_IMAGE_GENERATION, status="ok", latency_ms=900, images=2)

    assert cost == pytest.approx(2 * IMAGE_COST_USD)
    assert collector.snapshot()["operations"][OP_IMAGE_GENERATION]["images"] == 2


def test_explicit_cost_wins():
    collector = MetricsCollector()
    assert collector.record_call(operation="x", status="ok", latency_ms=1, images=3, cost_usd=0.5) == 0.5


def test_price_lookup_by_model_family():
    assert estimate_token_cost("anthropic/claude-sonnet-4-5", 1000, 1000) == pytest.approx(0.018)
    assert estimate_token_cost("unknown-model", 1000, 0) == pytest.approx(0.0000075)


def test_reset():
    collector = MetricsCollector()
    collector.record_call(operation=OP_SEMANTIC_MATCH, status="ok", latency_ms=1)
    collector.reset()
    assert collector.snapshot() == {"operations": {}}


def test_global_collector_is_singleton():
    assert get_metrics_collector() is get_metrics_collector()

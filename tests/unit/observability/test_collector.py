# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the observability collector module.

Tests cover:
- HttpMetricsCollector: dict-backed counters and histograms
- Request lifecycle recording helpers
- Prometheus mirroring and HTTP server handling
- Singleton pattern: get_metrics_collector, reset_metrics_collector
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import pytest

from typed_http_client.observability.collector import (
    METRIC_DEFINITIONS,
    PROMETHEUS_AVAILABLE,
    HttpMetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from typed_http_client.observability.constants import (
    HANDLER_RECYCLES_TOTAL,
    REQUEST_DURATION_SECONDS,
    REQUESTS_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
    status_class,
)
from typed_http_client.observability.protocols import MetricsCollectorProtocol


@pytest.fixture
def collector() -> HttpMetricsCollector:
    return HttpMetricsCollector(enable_prometheus=False)


class TestMetricDefinitions:
    def test_all_metrics_defined(self):
        assert set(METRIC_DEFINITIONS) == {
            REQUESTS_TOTAL,
            REQUEST_DURATION_SECONDS,
            TRANSPORT_ERRORS_TOTAL,
            RETRIES_TOTAL,
            HANDLER_RECYCLES_TOTAL,
        }

    def test_duration_is_histogram(self):
        defn = METRIC_DEFINITIONS[REQUEST_DURATION_SECONDS]
        assert defn.metric_type == "histogram"
        assert defn.buckets

    @pytest.mark.parametrize(
        "code,expected", [(200, "2xx"), (302, "3xx"), (404, "4xx"), (503, "5xx")]
    )
    def test_status_class(self, code, expected):
        assert status_class(code) == expected


class TestCounters:
    def test_inc_counter_with_labels(self, collector):
        collector.inc_counter("custom_total", labels={"b": "2", "a": "1"})
        collector.inc_counter("custom_total", 3, labels={"a": "1", "b": "2"})
        assert collector.get_metrics()["counters"]["custom_total"] == {"a=1,b=2": 4}

    def test_inc_counter_without_labels(self, collector):
        collector.inc_counter("plain_total")
        assert collector.get_metrics()["counters"]["plain_total"] == {"": 1}

    def test_negative_increment_rejected(self, collector):
        with pytest.raises(ValueError, match="non-negative"):
            collector.inc_counter("custom_total", -1)

    def test_concurrent_increments(self, collector):
        def worker():
            for _ in range(500):
                collector.inc_counter("threads_total")

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert collector.get_metrics()["counters"]["threads_total"] == {"": 2000}


class TestHistograms:
    def test_summary_statistics(self, collector):
        for value in (0.1, 0.3, 0.2):
            collector.observe_histogram("latency", value, labels={"method": "GET"})

        summary = collector.get_metrics()["histograms"]["latency"]["method=GET"]
        assert summary["count"] == 3
        assert summary["sum"] == pytest.approx(0.6)
        assert summary["min"] == 0.1
        assert summary["max"] == 0.3

    def test_observations_are_capped(self, collector):
        with patch.object(HttpMetricsCollector, "MAX_OBSERVATIONS", 5):
            for value in range(8):
                collector.observe_histogram("latency", float(value))

        summary = collector.get_metrics()["histograms"]["latency"][""]
        assert summary["count"] == 5
        assert summary["min"] == 3.0


class TestRecordingHelpers:
    def test_satisfies_protocol(self, collector):
        assert isinstance(collector, MetricsCollectorProtocol)

    def test_record_request(self, collector):
        collector.record_request("POST", 201, 0.05)
        collector.record_request("POST", 422, 0.02)

        metrics = collector.get_metrics()
        assert metrics["counters"][REQUESTS_TOTAL] == {
            "method=POST,status_class=2xx": 1,
            "method=POST,status_class=4xx": 1,
        }
        assert metrics["histograms"][REQUEST_DURATION_SECONDS]["method=POST"]["count"] == 2

    def test_record_transport_error(self, collector):
        collector.record_transport_error("GET", TimeoutError("slow"))
        assert collector.get_metrics()["counters"][TRANSPORT_ERRORS_TOTAL] == {
            "error_type=TimeoutError,method=GET": 1
        }

    def test_record_retry_and_recycle(self, collector):
        collector.record_retry("GET", "503")
        collector.record_handler_recycle()

        counters = collector.get_metrics()["counters"]
        assert counters[RETRIES_TOTAL] == {"method=GET,reason=503": 1}
        assert counters[HANDLER_RECYCLES_TOTAL] == {"": 1}

    def test_reset(self, collector):
        collector.record_request("GET", 200, 0.01)
        collector.reset()
        assert collector.get_metrics() == {"counters": {}, "histograms": {}}


class TestPrometheus:
    def test_disabled_collector_reports_disabled(self, collector):
        assert not collector.prometheus_enabled

    @pytest.mark.skipif(not PROMETHEUS_AVAILABLE, reason="prometheus_client not installed")
    def test_mirrors_to_registry(self):
        from prometheus_client import CollectorRegistry

        registry = CollectorRegistry()
        collector = HttpMetricsCollector(enable_prometheus=True, registry=registry)
        collector.record_request("GET", 200, 0.2)
        collector.record_handler_recycle()

        assert collector.prometheus_enabled
        assert (
            registry.get_sample_value(
                REQUESTS_TOTAL, {"method": "GET", "status_class": "2xx"}
            )
            == 1.0
        )
        assert registry.get_sample_value(HANDLER_RECYCLES_TOTAL) == 1.0
        assert (
            registry.get_sample_value(
                f"{REQUEST_DURATION_SECONDS}_count", {"method": "GET"}
            )
            == 1.0
        )

    @pytest.mark.skipif(not PROMETHEUS_AVAILABLE, reason="prometheus_client not installed")
    def test_duplicate_registration_is_tolerated(self):
        from prometheus_client import CollectorRegistry

        registry = CollectorRegistry()
        first = HttpMetricsCollector(registry=registry)
        second = HttpMetricsCollector(registry=registry)
        first.record_retry("GET", "404")
        second.record_retry("GET", "404")

        assert second.get_metrics()["counters"][RETRIES_TOTAL] == {
            "method=GET,reason=404": 1
        }

    def test_server_unavailable_without_prometheus(self, collector):
        with patch(
            "typed_http_client.observability.collector.PROMETHEUS_AVAILABLE", False
        ):
            assert collector.start_http_server(port=0) is False
        assert not collector.server_running

    @pytest.mark.skipif(not PROMETHEUS_AVAILABLE, reason="prometheus_client not installed")
    def test_server_start_is_idempotent(self, collector):
        fake_start = MagicMock()
        with patch(
            "typed_http_client.observability.collector.start_http_server", fake_start
        ):
            assert collector.start_http_server("0.0.0.0", 9100)
            assert collector.start_http_server("0.0.0.0", 9100)

        fake_start.assert_called_once()
        assert collector.server_running

    @pytest.mark.skipif(not PROMETHEUS_AVAILABLE, reason="prometheus_client not installed")
    def test_server_start_failure(self, collector):
        with patch(
            "typed_http_client.observability.collector.start_http_server",
            MagicMock(side_effect=OSError("address in use")),
        ):
            assert collector.start_http_server() is False
        assert not collector.server_running


class TestSingleton:
    def test_returns_same_instance(self):
        assert get_metrics_collector() is get_metrics_collector()

    def test_reset_creates_new_instance(self):
        first = get_metrics_collector(enable_prometheus=False)
        first.record_handler_recycle()
        reset_metrics_collector()
        second = get_metrics_collector(enable_prometheus=False)

        assert second is not first
        assert second.get_metrics()["counters"] == {}

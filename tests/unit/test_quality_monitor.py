"""
Unit tests for quality monitoring
"""
import json

import pytest

from joyex.services.quality_monitor import QualityMetrics, QualityMonitor, calculate_quality_score


def _metrics(success=True, processing_time=1000.0, input_size=1000, output_size=500, score=8.0):
    return QualityMetrics(
        processing_time=processing_time,
        input_image_size=input_size,
        output_image_size=output_size,
        compression_ratio=50.0,
        quality_score=score,
        ai_processing_success=success,
    )


class TestCalculateQualityScore:
    """Tests for the per-run score"""

    @pytest.mark.unit
    def test_failure_scores_zero(self):
        assert calculate_quality_score(1000, 500, 100, False) == 0.0

    @pytest.mark.unit
    def test_fast_run_with_good_compression_is_capped(self):
        assert calculate_quality_score(1000, 500, 1000, True) == 10.0

    @pytest.mark.unit
    def test_slow_run_with_no_compression(self):
        # -1 for little compression, -2 for > 10s
        assert calculate_quality_score(1000, 900, 12000, True) == 7.0

    @pytest.mark.unit
    def test_unknown_sizes_skip_compression_terms(self):
        assert calculate_quality_score(0, 0, 6000, True) == 9.0


class TestQualityMonitor:
    """Tests for the metrics window"""

    @pytest.mark.unit
    def test_empty_stats(self, quality_monitor):
        stats = quality_monitor.get_processing_stats()

        assert stats.total_processed == 0
        assert stats.success_rate == 0.0

    @pytest.mark.unit
    def test_stats_aggregate(self, quality_monitor):
        quality_monitor.record_metrics(_metrics(success=True, processing_time=1000, score=9.0))
        quality_monitor.record_metrics(_metrics(success=False, processing_time=3000, score=0.0))

        stats = quality_monitor.get_processing_stats()

        assert stats.total_processed == 2
        assert stats.success_rate == 50.0
        assert stats.average_processing_time == 2000.0
        assert stats.average_quality_score == 4.5
        assert stats.total_data_saved == 1000
        assert stats.optimization_efficiency == 50.0

    @pytest.mark.unit
    def test_window_is_bounded(self):
        monitor = QualityMonitor(max_metrics=3)
        for i in range(5):
            monitor.record_metrics(_metrics(processing_time=float(i)))

        assert len(monitor.metrics) == 3
        assert [m.processing_time for m in monitor.metrics] == [2.0, 3.0, 4.0]

    @pytest.mark.unit
    def test_recommendations_when_failing(self, quality_monitor):
        quality_monitor.record_metrics(_metrics(success=False, score=0.0))

        recommendations = quality_monitor.get_quality_recommendations()

        assert any("success rate" in r for r in recommendations)

    @pytest.mark.unit
    def test_recommendations_when_healthy(self, quality_monitor):
        quality_monitor.record_metrics(_metrics(success=True, score=9.0))

        assert quality_monitor.get_quality_recommendations() == [
            "System is performing optimally! All metrics are within excellent ranges."
        ]

    @pytest.mark.unit
    def test_generation_runs_do_not_count_towards_efficiency(self, quality_monitor):
        quality_monitor.record_metrics(_metrics(input_size=1000, output_size=400, score=9.0))
        quality_monitor.record_metrics(_metrics(input_size=0, output_size=0, score=10.0))

        stats = quality_monitor.get_processing_stats()

        assert stats.optimized_count == 1
        assert stats.total_data_saved == 600
        assert stats.optimization_efficiency == 60.0

    @pytest.mark.unit
    def test_generation_only_window_is_healthy(self, quality_monitor):
        for _ in range(3):
            quality_monitor.record_metrics(_metrics(input_size=0, output_size=0, score=10.0))

        stats = quality_monitor.get_processing_stats()

        assert stats.optimized_count == 0
        assert stats.optimization_efficiency == 0.0
        assert quality_monitor.get_quality_recommendations() == [
            "System is performing optimally! All metrics are within excellent ranges."
        ]

    @pytest.mark.unit
    def test_export_and_clear(self):
        monitor = QualityMonitor(max_metrics=500)
        for i in range(120):
            monitor.record_metrics(_metrics(processing_time=float(i)))

        exported = json.loads(monitor.export_metrics())

        assert set(exported) == {"export_date", "stats", "recommendations", "raw_metrics"}
        assert len(exported["raw_metrics"]) == 100
        assert exported["stats"]["total_processed"] == 120
        # only the most recent entries are exported
        assert exported["raw_metrics"][0]["processing_time"] == 20.0

        monitor.clear_metrics()
        assert monitor.get_processing_stats().total_processed == 0

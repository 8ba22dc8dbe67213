"""
Quality monitoring for image processing and generation.

Keeps a bounded in-process window of per-request metrics and derives
aggregate stats and tuning recommendations from it. One monitor is created
per application and passed to the components that record into it.
"""
import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_METRICS = 1000
EXPORT_RAW_METRICS = 100


@dataclass
class QualityMetrics:
    processing_time: float  # milliseconds
    input_image_size: int  # bytes, 0 when unknown
    output_image_size: int
    compression_ratio: float
    quality_score: float  # 0-10
    ai_processing_success: bool
    error_rate: float = 0.0
    user_satisfaction: Optional[float] = None
    operation: str = "generate"
    timestamp: float = field(default_factory=time.time)


@dataclass
class ProcessingStats:
    total_processed: int = 0
    success_rate: float = 0.0
    average_processing_time: float = 0.0
    average_quality_score: float = 0.0
    total_data_saved: int = 0
    optimization_efficiency: float = 0.0
    optimized_count: int = 0  # runs with known input/output sizes


def calculate_quality_score(
    original_size: int, processed_size: int, processing_time: float, success: bool
) -> float:
    """Score one processing run on a 0-10 scale; processing_time is in milliseconds"""
    if not success:
        return 0.0

    score = 10.0

    if original_size > 0:
        compression_ratio = processed_size / original_size
        if compression_ratio < 0.1:
            score -= 2  # Too much compression
        if compression_ratio > 0.8:
            score -= 1  # Too little compression
        if 0.3 <= compression_ratio <= 0.6:
            score += 0.5

    if processing_time > 10000:
        score -= 2
    elif processing_time > 5000:
        score -= 1

    if processing_time < 3000:
        score += 0.5

    return max(0.0, min(10.0, score))


class QualityMonitor:
    """Bounded in-memory metrics window"""

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS):
        self.max_metrics = max_metrics
        self.metrics: List[QualityMetrics] = []

    def record_metrics(self, metrics: QualityMetrics) -> None:
        self.metrics.append(metrics)
        if len(self.metrics) > self.max_metrics:
            self.metrics = self.metrics[-self.max_metrics :]

    def get_processing_stats(self) -> ProcessingStats:
        if not self.metrics:
            return ProcessingStats()

        total = len(self.metrics)
        successful = [m for m in self.metrics if m.ai_processing_success]
        # Generation runs carry no byte sizes; only sized runs count towards savings
        sized = [m for m in self.metrics if m.input_image_size > 0]
        total_input = sum(m.input_image_size for m in sized)
        total_data_saved = sum(m.input_image_size - m.output_image_size for m in sized)

        return ProcessingStats(
            total_processed=total,
            success_rate=len(successful) / total * 100,
            average_processing_time=sum(m.processing_time for m in self.metrics) / total,
            average_quality_score=sum(m.quality_score for m in self.metrics) / total,
            total_data_saved=total_data_saved,
            optimization_efficiency=(total_data_saved / total_input * 100) if total_data_saved > 0 else 0.0,
            optimized_count=len(sized),
        )

    def get_quality_recommendations(self) -> List[str]:
        stats = self.get_processing_stats()
        recommendations = []

        if stats.success_rate < 95:
            recommendations.append("Consider adjusting image preprocessing parameters to improve success rate")

        if stats.average_quality_score < 7:
            recommendations.append(
                "Image quality could be improved - try higher resolution inputs or better preprocessing"
            )

        if stats.average_processing_time > 5000:
            recommendations.append(
                "Processing time is high - consider optimizing image sizes or compression settings"
            )

        if stats.optimized_count and stats.optimization_efficiency < 20:
            recommendations.append("Optimization efficiency is low - review compression and enhancement settings")

        if not recommendations:
            recommendations.append("System is performing optimally! All metrics are within excellent ranges.")

        return recommendations

    def export_metrics(self) -> str:
        payload: Dict[str, Any] = {
            "export_date": datetime.now(timezone.utc).isoformat(),
            "stats": asdict(self.get_processing_stats()),
            "recommendations": self.get_quality_recommendations(),
            "raw_metrics": [asdict(m) for m in self.metrics[-EXPORT_RAW_METRICS:]],
        }
        return json.dumps(payload, indent=2)

    def clear_metrics(self) -> None:
        self.metrics = []
        logger.info("Quality metrics cleared")

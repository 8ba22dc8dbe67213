"""
Quality monitoring routes
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends, Response, status

from joyex.core.dependencies import get_quality_monitor
from joyex.services.quality_monitor import QualityMonitor

router = APIRouter(prefix="/quality", tags=["quality"])


@router.get("/stats")
async def get_quality_stats(monitor: QualityMonitor = Depends(get_quality_monitor)):
    """Aggregate stats and recommendations for the current metrics window"""
    return {
        "stats": asdict(monitor.get_processing_stats()),
        "recommendations": monitor.get_quality_recommendations(),
    }


@router.get("/export")
async def export_quality_metrics(monitor: QualityMonitor = Depends(get_quality_monitor)):
    export = monitor.export_metrics()
    return Response(
        content=export,
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=quality-metrics.json"},
    )


@router.delete("/metrics", status_code=status.HTTP_204_NO_CONTENT)
async def clear_quality_metrics(monitor: QualityMonitor = Depends(get_quality_monitor)):
    monitor.clear_metrics()
    return None

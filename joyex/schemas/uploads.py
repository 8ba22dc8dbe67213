"""
Pydantic schemas for uploads and image quality analysis
"""
from typing import List

from pydantic import BaseModel


class UploadResponse(BaseModel):
    success: bool
    urls: List[str]


class ImageQualityResponse(BaseModel):
    filename: str
    is_optimal: bool
    score: int
    width: int
    height: int
    recommendations: List[str]


class QualityAnalysisResponse(BaseModel):
    reports: List[ImageQualityResponse]

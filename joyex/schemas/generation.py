"""
Pydantic schemas for the image generation boundary (FAL Seedream edit)
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """Normalized payload handed to the generation client"""

    prompt: str
    image_urls: List[str]
    size: Optional[str] = None  # "2048x2048"
    seed: Optional[int] = None
    strength: Optional[float] = None
    guidance: Optional[float] = None


class GeneratedImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    width: Optional[int] = None
    height: Optional[int] = None


class GenerationResult(BaseModel):
    """Response from the generation API (or its simulated stand-in)"""

    model_config = ConfigDict(extra="ignore")

    images: List[GeneratedImage] = Field(default_factory=list)
    request_id: Optional[str] = None
    timings: Optional[Dict[str, float]] = None

"""
Pydantic schemas for edit/replace jobs
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from joyex.database.models import JobMode
from joyex.schemas.generation import GeneratedImage


# Request schemas
class EditJobInput(BaseModel):
    """Job submission; blank prompts and empty image lists are reported by the orchestrator, not rejected here"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mode: JobMode
    prompt: str = ""
    image_urls: List[str] = Field(default_factory=list)
    user_id: str = Field(..., min_length=1)
    size: Optional[str] = None  # "1024x1024", "1280x720", "2048x2048", ...
    seed: Optional[int] = None
    strength: Optional[float] = Field(None, ge=0, le=1)
    guidance: Optional[float] = Field(None, ge=0)
    addon_prompt: Optional[str] = None  # Extra clause for replace mode
    accuracy_preset: Optional[str] = None


class ReplaceJobRequest(BaseModel):
    """Replace job with the competitor / product split spelled out"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    prompt: str = ""
    competitor_image_urls: List[str] = Field(default_factory=list)
    product_image_urls: List[str] = Field(default_factory=list)
    user_id: str = Field(..., min_length=1)
    size: Optional[str] = None
    seed: Optional[int] = None
    strength: Optional[float] = Field(None, ge=0, le=1)
    guidance: Optional[float] = Field(None, ge=0)
    addon_prompt: Optional[str] = None
    accuracy_preset: Optional[str] = None

    def to_job_input(self) -> EditJobInput:
        """Competitor images first, product images after"""
        return EditJobInput(
            mode=JobMode.REPLACE,
            prompt=self.prompt,
            image_urls=[*self.competitor_image_urls, *self.product_image_urls],
            user_id=self.user_id,
            size=self.size,
            seed=self.seed,
            strength=self.strength,
            guidance=self.guidance,
            addon_prompt=self.addon_prompt,
            accuracy_preset=self.accuracy_preset,
        )


class JobCreate(BaseModel):
    """Job record before the repository assigns id and timestamp"""

    user_id: str
    mode: JobMode
    prompt: str
    images: List[str]
    output_url: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None


class JobMetaUpdate(BaseModel):
    meta: Dict[str, Any]


# Response schemas
class EditJobData(BaseModel):
    """Serialized as `{images, jobId}`"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    images: List[GeneratedImage]
    job_id: str


class EditJobResult(BaseModel):
    success: bool
    data: Optional[EditJobData] = None
    error: Optional[str] = None
    # validation / generation / internal; drives the HTTP status, never serialized
    error_code: Optional[str] = Field(default=None, exclude=True)


class JobResponse(BaseModel):
    """Schema for one history entry"""

    id: str
    user_id: str
    mode: JobMode
    prompt: str
    images: List[str]
    output_url: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int

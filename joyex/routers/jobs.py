"""
Job API routes: submit edit/replace jobs and manage job history
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm.exc import StaleDataError

from joyex.core.dependencies import get_job_orchestrator, get_job_repository
from joyex.schemas.jobs import (
    EditJobInput,
    EditJobResult,
    JobListResponse,
    JobMetaUpdate,
    JobResponse,
    ReplaceJobRequest,
)
from joyex.services.job_orchestrator import ERROR_GENERATION, ERROR_VALIDATION, JobOrchestrator
from joyex.services.job_repository import JobRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])

ERROR_STATUS = {
    ERROR_VALIDATION: status.HTTP_400_BAD_REQUEST,
    ERROR_GENERATION: status.HTTP_502_BAD_GATEWAY,
}


def _to_response(result: EditJobResult) -> JSONResponse:
    """Envelope body, HTTP status derived from the failure kind"""
    if result.success:
        status_code = status.HTTP_200_OK
    else:
        status_code = ERROR_STATUS.get(result.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    content = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=content)


@router.post("", response_model=EditJobResult)
async def submit_job(
    job_input: EditJobInput,
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """
    Submit an edit or replace job.
    Runs synchronously: the response carries the generated images and the new job id.
    """
    result = await orchestrator.submit(job_input)
    return _to_response(result)


@router.post("/replace", response_model=EditJobResult)
async def submit_replace_job(
    request: ReplaceJobRequest,
    orchestrator: JobOrchestrator = Depends(get_job_orchestrator),
):
    """
    Submit a competitor-style replace job with explicit competitor and product image lists.
    """
    if not request.competitor_image_urls:
        return _to_response(
            EditJobResult(success=False, error="At least one competitor image is required", error_code=ERROR_VALIDATION)
        )
    if not request.product_image_urls:
        return _to_response(
            EditJobResult(success=False, error="At least one product image is required", error_code=ERROR_VALIDATION)
        )

    result = await orchestrator.submit(request.to_job_input())
    return _to_response(result)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    user_id: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    repository: JobRepository = Depends(get_job_repository),
):
    """
    List a user's job history, most recent first.
    """
    jobs = await repository.list_by_user(user_id, limit=limit)
    return JobListResponse(jobs=[JobResponse.model_validate(job) for job in jobs], total=len(jobs))


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(
    job_id: str,
    user_id: str = Query(..., min_length=1),
    repository: JobRepository = Depends(get_job_repository),
):
    """
    Delete a job owned by the user. Deleting a missing job is not an error.
    """
    await repository.delete_by_id_and_user(job_id, user_id)
    return None


@router.patch("/{job_id}/meta", response_model=JobResponse)
async def update_job_meta(
    job_id: str,
    update: JobMetaUpdate,
    user_id: str = Query(..., min_length=1),
    repository: JobRepository = Depends(get_job_repository),
):
    """
    Merge extra metadata into a job record.
    """
    try:
        job = await repository.update_meta(job_id, user_id, update.meta)
    except StaleDataError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Job was modified concurrently, reload and retry",
        )

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )

    return JobResponse.model_validate(job)

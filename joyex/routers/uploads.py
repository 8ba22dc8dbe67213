"""
Upload API routes for source images
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse

from joyex.core.dependencies import get_upload_service
from joyex.schemas.uploads import ImageQualityResponse, QualityAnalysisResponse, UploadResponse
from joyex.services.image_preprocessor import ImageProcessingError, analyze_image_quality
from joyex.services.upload_service import IncomingFile, UploadService, UploadValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/upload", tags=["uploads"])


async def _read_files(files: Optional[List[UploadFile]]) -> List[IncomingFile]:
    incoming = []
    for file in files or []:
        incoming.append(
            IncomingFile(
                filename=file.filename or "upload",
                content_type=file.content_type or "",
                data=await file.read(),
            )
        )
    return incoming


@router.post("", response_model=UploadResponse)
async def upload_images(
    files: Optional[List[UploadFile]] = File(None),
    optimize: bool = Query(False, description="Resize and enhance images before storing"),
    upload_service: UploadService = Depends(get_upload_service),
):
    """
    Store one or more images and return their public URLs.
    """
    try:
        incoming = await _read_files(files)
        urls = await upload_service.save_files(incoming, optimize=optimize)
        return UploadResponse(success=True, urls=urls)

    except (UploadValidationError, ImageProcessingError) as e:
        logger.warning(f"Upload rejected: {e}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})

    except Exception as e:
        logger.error(f"Upload error: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "Failed to upload files"}
        )


@router.post("/analyze", response_model=QualityAnalysisResponse)
async def analyze_images(files: Optional[List[UploadFile]] = File(None)):
    """
    Score images for AI processing without storing them.
    """
    incoming = await _read_files(files)
    if not incoming:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "No files uploaded"})

    reports = []
    for file in incoming:
        try:
            report = analyze_image_quality(file.data)
        except ImageProcessingError as e:
            logger.warning(f"Could not analyze {file.filename}: {e}")
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})

        reports.append(
            ImageQualityResponse(
                filename=file.filename,
                is_optimal=report.is_optimal,
                score=report.score,
                width=report.width,
                height=report.height,
                recommendations=report.recommendations,
            )
        )

    return QualityAnalysisResponse(reports=reports)

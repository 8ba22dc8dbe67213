"""
Local upload storage.

Files are validated, optionally preprocessed, and written one at a time under
`{timestamp_ms}_{random}.{ext}` names; the public URL of each is returned.
Raw handling follows the active accuracy preset; PNGs of reasonable size skip
optimisation even when it is requested.
"""
import logging
import random
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from joyex.services.accuracy_config import ImageProcessingPolicy
from joyex.services.image_preprocessor import (
    ImageOptimizationOptions,
    RawProcessingOptions,
    optimize_image_for_ai,
    process_image_raw,
    should_bypass_all_processing,
)
from joyex.services.quality_monitor import QualityMetrics, QualityMonitor, calculate_quality_score

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"


class UploadValidationError(ValueError):
    """Upload rejected because of its type, size or content"""


@dataclass
class IncomingFile:
    filename: str
    content_type: str
    data: bytes


def _random_id(length: int = 13) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def build_filename(original_name: Optional[str]) -> str:
    """Unique on-disk name that keeps the original extension"""
    extension = DEFAULT_EXTENSION
    if original_name and "." in original_name:
        candidate = original_name.rsplit(".", 1)[1].lower()
        if candidate.isalnum():
            extension = candidate
    return f"{int(time.time() * 1000)}_{_random_id()}.{extension}"


class UploadService:
    """Writes uploads to a server-local directory"""

    def __init__(
        self,
        upload_dir: str,
        public_prefix: str = "/uploads",
        max_file_size: int = 8 * 1024 * 1024,
        allowed_types: Optional[List[str]] = None,
        quality_monitor: Optional[QualityMonitor] = None,
        processing_policy: Optional[ImageProcessingPolicy] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.public_prefix = public_prefix.rstrip("/")
        self.max_file_size = max_file_size
        self.allowed_types = allowed_types
        self.quality_monitor = quality_monitor
        self.processing_policy = processing_policy or ImageProcessingPolicy()

    def validate(self, file: IncomingFile) -> None:
        if not file.content_type or not file.content_type.startswith("image/"):
            raise UploadValidationError(f"File {file.filename} must be an image")

        if self.allowed_types and file.content_type not in self.allowed_types:
            raise UploadValidationError(f"File type {file.content_type} is not allowed")

        if not file.data:
            raise UploadValidationError(f"File {file.filename} is empty")

        if len(file.data) > self.max_file_size:
            raise UploadValidationError(
                f"File {file.filename} exceeds the {self.max_file_size // (1024 * 1024)}MB limit"
            )

    async def save_files(
        self, files: List[IncomingFile], optimize: bool = False, options: ImageOptimizationOptions = None
    ) -> List[str]:
        """Validate everything first, then process and write each file in order"""
        if not files:
            raise UploadValidationError("No files uploaded")

        for file in files:
            self.validate(file)

        self.upload_dir.mkdir(parents=True, exist_ok=True)

        urls = []
        for file in files:
            data, original_name = self._prepare(file, optimize, options)
            filename = build_filename(original_name)
            (self.upload_dir / filename).write_bytes(data)
            urls.append(f"{self.public_prefix}/{filename}")
            logger.info(f"Stored upload {file.filename} as {filename} ({len(data)} bytes)")

        return urls

    def _prepare(self, file: IncomingFile, optimize: bool, options: ImageOptimizationOptions):
        if not optimize or should_bypass_all_processing(file.content_type, len(file.data)):
            raw = process_image_raw(file.data, file.filename, file.content_type, self._raw_options())
            logger.debug(f"Raw processing for {file.filename}: {raw.processing_applied}")
            return raw.data, raw.filename

        start_time = time.time()
        result = optimize_image_for_ai(file.data, file.filename, options)
        processing_time = (time.time() - start_time) * 1000

        if self.quality_monitor is not None:
            self.quality_monitor.record_metrics(
                QualityMetrics(
                    processing_time=processing_time,
                    input_image_size=result.original_size,
                    output_image_size=result.optimized_size,
                    compression_ratio=result.compression_ratio,
                    quality_score=calculate_quality_score(
                        result.original_size, result.optimized_size, processing_time, True
                    ),
                    ai_processing_success=True,
                    operation="optimize",
                )
            )

        return result.data, result.filename

    def _raw_options(self) -> RawProcessingOptions:
        policy = self.processing_policy
        return RawProcessingOptions(
            maintain_original_format=policy.maintain_original_format,
            preserve_metadata=policy.preserve_metadata,
            bypass_optimization=policy.bypass_optimization,
        )

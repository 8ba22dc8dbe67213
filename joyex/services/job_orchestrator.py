"""
Edit/replace job orchestration.

Validates a job request, renders the final prompt for its mode, calls the
generation client, persists the job record and returns a normalized result.
Every failure is caught here and reported back as `{success: False, error}`;
a job record is written only after a successful generation.
"""
import time
from typing import Optional

from joyex.core.config import Settings
from joyex.database.models import JobMode
from joyex.middleware.logging_middleware import bind_job_id, get_logger
from joyex.schemas.generation import GenerationRequest
from joyex.schemas.jobs import EditJobData, EditJobInput, EditJobResult, JobCreate
from joyex.services.accuracy_config import AccuracyConfig, get_accuracy_config, validate_accuracy_config
from joyex.services.fal_client import FalClient, GenerationError, parse_image_size
from joyex.services.job_repository import JobRepository
from joyex.services.prompt_builder import build_prompt
from joyex.services.quality_monitor import QualityMetrics, QualityMonitor, calculate_quality_score

logger = get_logger(__name__)

MIN_REPLACE_IMAGES = 2

ERROR_VALIDATION = "validation"
ERROR_GENERATION = "generation"
ERROR_INTERNAL = "internal"


class JobValidationError(ValueError):
    """Job input rejected before any network call"""


class JobOrchestrator:
    """Runs one job submission end to end"""

    def __init__(
        self,
        fal_client: FalClient,
        repository: JobRepository,
        settings: Settings,
        quality_monitor: Optional[QualityMonitor] = None,
    ):
        self.fal_client = fal_client
        self.repository = repository
        self.settings = settings
        self.quality_monitor = quality_monitor

    def validate(self, job_input: EditJobInput) -> None:
        """Preconditions, checked in order"""
        if not job_input.image_urls:
            raise JobValidationError("At least one image is required")

        if not job_input.prompt or not job_input.prompt.strip():
            raise JobValidationError("Prompt is required")

        if job_input.mode == JobMode.REPLACE and len(job_input.image_urls) < MIN_REPLACE_IMAGES:
            raise JobValidationError(f"Competitor replace mode requires at least {MIN_REPLACE_IMAGES} images")

    def resolve_accuracy(self, preset_name: Optional[str]) -> AccuracyConfig:
        config = get_accuracy_config(preset_name or self.settings.accuracy_preset)

        if not validate_accuracy_config(config):
            if self.settings.enforce_accuracy_policy:
                raise JobValidationError(f"Accuracy preset '{config.name}' does not meet the accuracy policy")
            logger.warning(f"Accuracy preset '{config.name}' does not meet the accuracy policy, continuing")

        return config

    async def submit(self, job_input: EditJobInput) -> EditJobResult:
        start_time = time.time()
        mode = JobMode(job_input.mode)

        try:
            self.validate(job_input)
            accuracy = self.resolve_accuracy(job_input.accuracy_preset)

            final_prompt = build_prompt(mode, job_input.prompt, len(job_input.image_urls), job_input.addon_prompt)

            generation_request = GenerationRequest(
                prompt=final_prompt,
                image_urls=job_input.image_urls,
                size=job_input.size,
                seed=job_input.seed,
                strength=job_input.strength,
                guidance=job_input.guidance,
            )

            logger.info(
                f"Submitting {mode.value} job for user {job_input.user_id}: "
                f"images={len(job_input.image_urls)}, size={job_input.size}, preset={accuracy.name}"
            )
            result = await self.fal_client.generate(generation_request, accuracy)

            width, height = parse_image_size(job_input.size)
            job = await self.repository.save(
                JobCreate(
                    user_id=job_input.user_id,
                    mode=mode,
                    prompt=job_input.prompt,
                    images=job_input.image_urls,
                    output_url=result.images[0].url if result.images else None,
                    meta={
                        "original_prompt": job_input.prompt,
                        "final_prompt": final_prompt,
                        "fal_response": result.model_dump(),
                        "accuracy_preset": accuracy.name,
                        "parameters": {
                            "size": job_input.size,
                            "width": width,
                            "height": height,
                            "seed": job_input.seed,
                            "strength": job_input.strength,
                            "guidance": job_input.guidance,
                        },
                    },
                )
            )
            bind_job_id(job.id)

        except JobValidationError as e:
            logger.info(f"Job rejected for user {job_input.user_id}: {e}")
            return EditJobResult(success=False, error=str(e), error_code=ERROR_VALIDATION)

        except GenerationError as e:
            logger.error(f"Generation failed for user {job_input.user_id}: {e}")
            self._record(start_time, success=False)
            return EditJobResult(success=False, error=str(e), error_code=ERROR_GENERATION)

        except Exception as e:
            logger.exception(f"Edit job error for user {job_input.user_id}: {e}")
            self._record(start_time, success=False)
            return EditJobResult(
                success=False, error=str(e) or "Unknown error occurred", error_code=ERROR_INTERNAL
            )

        self._record(start_time, success=True)
        logger.info(f"Job {job.id} completed with {len(result.images)} images")

        return EditJobResult(success=True, data=EditJobData(images=result.images, job_id=job.id))

    def _record(self, start_time: float, success: bool) -> None:
        if self.quality_monitor is None:
            return

        processing_time = (time.time() - start_time) * 1000
        self.quality_monitor.record_metrics(
            QualityMetrics(
                processing_time=processing_time,
                input_image_size=0,
                output_image_size=0,
                compression_ratio=0.0,
                quality_score=calculate_quality_score(0, 0, processing_time, success),
                ai_processing_success=success,
                error_rate=0.0 if success else 1.0,
                operation="generate",
            )
        )

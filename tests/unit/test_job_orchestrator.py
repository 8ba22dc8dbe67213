"""
Unit tests for job orchestration
Tests validation order, prompt routing, persistence and error reporting
"""
from unittest.mock import AsyncMock, Mock

import pytest

from joyex.database.models import JobMode
from joyex.schemas.generation import GeneratedImage, GenerationResult
from joyex.schemas.jobs import EditJobInput, ReplaceJobRequest
from joyex.services.fal_client import FalAPIError, FalClient, GenerationConfigError
from joyex.services.job_orchestrator import (
    ERROR_GENERATION,
    ERROR_INTERNAL,
    ERROR_VALIDATION,
    JobOrchestrator,
)


@pytest.fixture
def generation_result():
    return GenerationResult(
        images=[GeneratedImage(url="https://cdn.example.com/out.png", width=2048, height=2048)],
        request_id="req_abc",
    )


@pytest.fixture
def mock_fal_client(generation_result):
    client = Mock(spec=FalClient)
    client.generate = AsyncMock(return_value=generation_result)
    return client


@pytest.fixture
def orchestrator(mock_fal_client, job_repository, test_settings, quality_monitor):
    return JobOrchestrator(mock_fal_client, job_repository, test_settings, quality_monitor=quality_monitor)


def _edit_input(**overrides):
    data = {
        "mode": "edit",
        "prompt": "make the sky purple",
        "imageUrls": ["https://img.example.com/a.png"],
        "userId": "user-1",
        "size": "2048x2048",
    }
    data.update(overrides)
    return EditJobInput.model_validate(data)


class TestValidation:
    """Validation runs before any generation call"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_images_rejected(self, orchestrator, mock_fal_client):
        result = await orchestrator.submit(_edit_input(imageUrls=[]))

        assert result.success is False
        assert result.error == "At least one image is required"
        assert result.error_code == ERROR_VALIDATION
        mock_fal_client.generate.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blank_prompt_rejected(self, orchestrator, mock_fal_client):
        result = await orchestrator.submit(_edit_input(prompt="   "))

        assert result.success is False
        assert result.error == "Prompt is required"
        mock_fal_client.generate.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_images_checked_before_prompt(self, orchestrator):
        result = await orchestrator.submit(_edit_input(imageUrls=[], prompt=""))

        assert result.error == "At least one image is required"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_replace_needs_two_images(self, orchestrator, mock_fal_client, job_repository):
        result = await orchestrator.submit(_edit_input(mode="replace"))

        assert result.success is False
        assert result.error == "Competitor replace mode requires at least 2 images"
        mock_fal_client.generate.assert_not_called()
        assert await job_repository.list_by_user("user-1") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_validation_failures_not_recorded_as_metrics(self, orchestrator, quality_monitor):
        await orchestrator.submit(_edit_input(imageUrls=[]))

        assert quality_monitor.metrics == []


class TestSuccessfulSubmission:
    """Tests for the happy path"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_edit_job_persisted_with_expanded_prompt(
        self, orchestrator, mock_fal_client, job_repository, generation_result
    ):
        result = await orchestrator.submit(_edit_input(seed=42))

        assert result.success is True
        assert result.data.images == generation_result.images

        request, accuracy = mock_fal_client.generate.call_args.args
        assert "USER REQUEST: make the sky purple" in request.prompt
        assert request.size == "2048x2048"
        assert request.seed == 42
        assert accuracy.name == "standard"

        jobs = await job_repository.list_by_user("user-1")
        assert len(jobs) == 1
        job = jobs[0]
        assert job.id == result.data.job_id
        assert job.mode == JobMode.EDIT
        assert job.prompt == "make the sky purple"
        assert job.output_url == "https://cdn.example.com/out.png"
        assert job.meta["original_prompt"] == "make the sky purple"
        assert job.meta["final_prompt"] == request.prompt
        assert job.meta["fal_response"]["request_id"] == "req_abc"
        assert job.meta["accuracy_preset"] == "standard"
        assert job.meta["parameters"]["width"] == 2048
        assert job.meta["parameters"]["seed"] == 42

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_replace_job_keeps_image_order(self, orchestrator, mock_fal_client, job_repository):
        replace = ReplaceJobRequest.model_validate(
            {
                "prompt": "use our bottle",
                "competitorImageUrls": ["https://img.example.com/competitor.png"],
                "productImageUrls": ["https://img.example.com/p1.png", "https://img.example.com/p2.png"],
                "userId": "user-1",
            }
        )

        result = await orchestrator.submit(replace.to_job_input())

        assert result.success is True
        request, _ = mock_fal_client.generate.call_args.args
        assert request.image_urls == [
            "https://img.example.com/competitor.png",
            "https://img.example.com/p1.png",
            "https://img.example.com/p2.png",
        ]
        assert request.prompt.endswith("ADDITIONAL REQUIREMENTS: use our bottle")

        jobs = await job_repository.list_by_user("user-1")
        assert jobs[0].mode == JobMode.REPLACE

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requested_preset_is_used(self, orchestrator, mock_fal_client):
        await orchestrator.submit(_edit_input(accuracyPreset="ultra-conservative"))

        _, accuracy = mock_fal_client.generate.call_args.args
        assert accuracy.name == "ultra-conservative"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_recorded_as_metric(self, orchestrator, quality_monitor):
        await orchestrator.submit(_edit_input())

        assert len(quality_monitor.metrics) == 1
        assert quality_monitor.metrics[0].ai_processing_success is True


class TestFailures:
    """Errors are reported in the result, never raised"""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_api_error_reported_and_not_persisted(self, orchestrator, mock_fal_client, job_repository):
        mock_fal_client.generate.side_effect = FalAPIError(500, "boom")

        result = await orchestrator.submit(_edit_input())

        assert result.success is False
        assert result.error == "FAL API Error: 500 - boom"
        assert result.error_code == ERROR_GENERATION
        assert await job_repository.list_by_user("user-1") == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_credential_reported(self, orchestrator, mock_fal_client):
        mock_fal_client.generate.side_effect = GenerationConfigError("FAL_KEY is not configured")

        result = await orchestrator.submit(_edit_input())

        assert result.success is False
        assert result.error_code == ERROR_GENERATION

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_error_reported(self, orchestrator, mock_fal_client, quality_monitor):
        mock_fal_client.generate.side_effect = RuntimeError("socket closed")

        result = await orchestrator.submit(_edit_input())

        assert result.success is False
        assert result.error == "socket closed"
        assert result.error_code == ERROR_INTERNAL
        assert quality_monitor.metrics[0].ai_processing_success is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_error_without_message_gets_default(self, orchestrator, mock_fal_client):
        mock_fal_client.generate.side_effect = RuntimeError()

        result = await orchestrator.submit(_edit_input())

        assert result.error == "Unknown error occurred"


class TestAccuracyPolicy:
    """Tests for advisory vs enforced preset validation"""

    @pytest.mark.unit
    def test_failing_preset_is_advisory_by_default(self, orchestrator, monkeypatch):
        monkeypatch.setattr("joyex.services.job_orchestrator.validate_accuracy_config", lambda config: False)

        assert orchestrator.resolve_accuracy("standard").name == "standard"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failing_preset_rejected_when_enforced(
        self, mock_fal_client, job_repository, test_settings, monkeypatch
    ):
        monkeypatch.setattr("joyex.services.job_orchestrator.validate_accuracy_config", lambda config: False)
        settings = test_settings.model_copy(update={"enforce_accuracy_policy": True})
        orchestrator = JobOrchestrator(mock_fal_client, job_repository, settings)

        result = await orchestrator.submit(_edit_input())

        assert result.success is False
        assert result.error_code == ERROR_VALIDATION
        mock_fal_client.generate.assert_not_called()

"""
FAL Seedream edit client.

Builds the outbound request from a normalized payload plus the resolved
accuracy preset, issues a single authenticated POST, and returns the parsed
result. When demo mode is switched on and no real key is configured, a
simulated response is returned instead.
"""
import asyncio
import logging
import random
import string
import time
from typing import Any, Dict, Optional, Tuple

import aiohttp

from joyex.core.config import Settings
from joyex.schemas.generation import GeneratedImage, GenerationRequest, GenerationResult
from joyex.services.accuracy_config import AccuracyConfig

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_SIZE = (1024, 1024)
PLACEHOLDER_KEY = "demo-key-for-testing"
OUTPUT_FORMAT = "png"


class GenerationError(Exception):
    """Base class for generation failures"""


class GenerationConfigError(GenerationError):
    """No usable credential and demo mode is off"""


class FalAPIError(GenerationError):
    """Non-2xx response from the FAL API"""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"FAL API Error: {status} - {body}")


def parse_image_size(size: Optional[str]) -> Tuple[int, int]:
    """Parse "WxH" into integers; anything unusable falls back to 1024x1024"""
    if not size:
        return DEFAULT_IMAGE_SIZE

    parts = size.lower().split("x")
    if len(parts) != 2:
        return DEFAULT_IMAGE_SIZE

    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError:
        return DEFAULT_IMAGE_SIZE

    if width <= 0 or height <= 0:
        return DEFAULT_IMAGE_SIZE

    return width, height


class FalClient:
    """Client for the FAL image edit endpoint"""

    def __init__(self, settings: Settings, session: Optional[aiohttp.ClientSession] = None):
        self.settings = settings
        self.api_key = settings.fal_key
        self.endpoint = settings.fal_endpoint
        self.demo_mode = settings.fal_demo_mode
        self.session = session
        self._owns_session = session is None
        self.usage_stats = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "simulated_requests": 0,
            "total_processing_time": 0.0,
        }

        if self.has_credential:
            masked_key = f"{self.api_key[:8]}..." if len(self.api_key) > 8 else "***"
            logger.info(f"FAL client initialized with key {masked_key}")
        elif self.demo_mode:
            logger.warning("FAL key not configured - demo mode will return simulated images")
        else:
            logger.warning("FAL key not configured and demo mode is off - generation requests will fail")

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_KEY

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session"""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.settings.fal_timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def close(self):
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None

    async def generate(self, request: GenerationRequest, accuracy: AccuracyConfig) -> GenerationResult:
        """Run one edit request; a single attempt, no retries"""
        if not self.has_credential:
            if not self.demo_mode:
                raise GenerationConfigError("FAL_KEY is not configured and FAL_DEMO_MODE is disabled")
            logger.info("Using demo mode for FAL API - no valid key found")
            return await self._simulate(request)

        return await self._call_api(request, accuracy)

    def build_payload(self, request: GenerationRequest, accuracy: AccuracyConfig) -> Dict[str, Any]:
        """Merge caller parameters with the accuracy preset into the API body"""
        width, height = parse_image_size(request.size)

        payload = {
            "prompt": request.prompt,
            "image_urls": request.image_urls,
            "image_size": {"width": width, "height": height},
            "strength": request.strength if request.strength is not None else accuracy.strength,
            "guidance": request.guidance if request.guidance is not None else accuracy.guidance,
            "guidance_scale": request.guidance if request.guidance is not None else accuracy.guidance_scale,
            "num_inference_steps": accuracy.num_inference_steps,
            "enable_safety_checker": accuracy.enable_safety_checker,
            "output_format": OUTPUT_FORMAT,
        }
        if request.seed is not None:
            payload["seed"] = request.seed

        return payload

    async def _call_api(self, request: GenerationRequest, accuracy: AccuracyConfig) -> GenerationResult:
        payload = self.build_payload(request, accuracy)
        headers = {"Authorization": f"Key {self.api_key}", "Content-Type": "application/json"}

        logger.info(
            f"Calling FAL API: prompt_length={len(request.prompt)}, images={len(request.image_urls)}, "
            f"size={payload['image_size']}, preset={accuracy.name}, steps={payload['num_inference_steps']}"
        )

        session = await self._get_session()
        start_time = time.time()
        self.usage_stats["total_requests"] += 1

        try:
            async with session.post(self.endpoint, json=payload, headers=headers) as response:
                if response.status < 200 or response.status >= 300:
                    error_text = await response.text()
                    logger.error(f"FAL API error {response.status}: {error_text[:500]}")
                    raise FalAPIError(response.status, error_text)

                data = await response.json()
        except Exception:
            self.usage_stats["failed_requests"] += 1
            raise

        processing_time = time.time() - start_time
        self.usage_stats["successful_requests"] += 1
        self.usage_stats["total_processing_time"] += processing_time

        result = GenerationResult.model_validate(data)
        logger.info(
            f"FAL API response received in {processing_time:.2f}s: images={len(result.images)}, "
            f"request_id={result.request_id}"
        )
        return result

    async def _simulate(self, request: GenerationRequest) -> GenerationResult:
        """Placeholder images with the requested dimensions; URLs are random"""
        delay = random.uniform(self.settings.fal_mock_delay_min, self.settings.fal_mock_delay_max)
        if delay > 0:
            await asyncio.sleep(delay)

        width, height = parse_image_size(request.size)
        images = [
            GeneratedImage(
                url=f"https://picsum.photos/{width}/{height}?random={random.randint(0, 999) + index}",
                width=width,
                height=height,
            )
            for index in range(len(request.image_urls))
        ]

        self.usage_stats["simulated_requests"] += 1
        request_suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))

        return GenerationResult(
            images=images,
            request_id=f"mock_{request_suffix}",
            timings={"inference": 2.5 + random.random() * 2},
        )

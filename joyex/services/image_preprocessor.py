"""
Image preprocessing applied to uploads before they are handed to the edit model.

Two modes are offered: an optimization pass (resize, slight contrast boost,
sharpen) and a raw pass that keeps the original bytes whenever possible.
There is also a heuristic quality check that flags images outside the
recommended resolution / aspect ratio / file size ranges.
"""
import io
import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from PIL import Image, ImageEnhance, ImageFilter, UnidentifiedImageError

logger = logging.getLogger(__name__)

SHARPEN_KERNEL = (0, -0.2, 0, -0.2, 1.8, -0.2, 0, -0.2, 0)
CONTRAST_BOOST = 1.1

MIN_RECOMMENDED_SIDE = 512
MAX_RECOMMENDED_SIDE = 4096
MAX_RECOMMENDED_FILE_SIZE = 10 * 1024 * 1024  # 10MB
MAX_ASPECT_RATIO = 3.0
MIN_ASPECT_RATIO = 0.33

PIL_FORMATS = {"jpeg": "JPEG", "png": "PNG", "webp": "WEBP"}


class ImageProcessingError(ValueError):
    """Raised when an upload cannot be decoded or re-encoded"""


@dataclass
class ImageOptimizationOptions:
    max_width: int = 2048
    max_height: int = 2048
    quality: int = 92  # High quality for AI processing
    format: str = "jpeg"
    maintain_aspect_ratio: bool = True
    enhance_contrast: bool = True
    sharpen: bool = True


@dataclass
class OptimizedImageResult:
    data: bytes
    filename: str
    content_type: str
    original_size: int
    optimized_size: int
    compression_ratio: int  # percent saved
    width: int
    height: int


@dataclass
class ImageQualityReport:
    is_optimal: bool
    score: int
    width: int
    height: int
    recommendations: List[str] = field(default_factory=list)


@dataclass
class RawProcessingOptions:
    maintain_original_format: bool = True
    preserve_metadata: bool = True
    bypass_optimization: bool = True


@dataclass
class RawProcessingResult:
    data: bytes
    filename: str
    content_type: str
    is_raw_mode: bool
    original_format: str
    preserved_metadata: bool
    processing_applied: List[str]


def _open_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
        return image
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Failed to load image: {e}") from e


def calculate_optimal_dimensions(
    original_width: int,
    original_height: int,
    max_width: int,
    max_height: int,
    maintain_aspect_ratio: bool = True,
) -> Tuple[int, int]:
    """Scale down to fit the bounds; results are floored to even numbers when keeping aspect ratio"""
    if not maintain_aspect_ratio:
        return min(original_width, max_width), min(original_height, max_height)

    aspect_ratio = original_width / original_height
    width = float(original_width)
    height = float(original_height)

    if width > max_width:
        width = max_width
        height = width / aspect_ratio

    if height > max_height:
        height = max_height
        width = height * aspect_ratio

    # Even dimensions compress better
    width = int(width // 2) * 2
    height = int(height // 2) * 2

    return max(width, 2), max(height, 2)


def _apply_enhancements(image: Image.Image, enhance_contrast: bool, sharpen: bool) -> Image.Image:
    if enhance_contrast:
        image = ImageEnhance.Contrast(image).enhance(CONTRAST_BOOST)

    if sharpen:
        image = image.filter(ImageFilter.Kernel((3, 3), SHARPEN_KERNEL, scale=1))

    return image


def optimize_image_for_ai(
    data: bytes, filename: str, options: ImageOptimizationOptions = None
) -> OptimizedImageResult:
    """Resize and enhance one image for better edit results"""
    options = options or ImageOptimizationOptions()
    output_format = options.format.lower()
    if output_format not in PIL_FORMATS:
        raise ImageProcessingError(f"Unsupported output format: {options.format}")

    image = _open_image(data)
    width, height = calculate_optimal_dimensions(
        image.width, image.height, options.max_width, options.max_height, options.maintain_aspect_ratio
    )

    # Kernel filters and JPEG both need a plain RGB image
    if image.mode != "RGB":
        image = image.convert("RGB")

    if (width, height) != image.size:
        image = image.resize((width, height), Image.Resampling.LANCZOS)

    if options.enhance_contrast or options.sharpen:
        image = _apply_enhancements(image, options.enhance_contrast, options.sharpen)

    buffer = io.BytesIO()
    save_kwargs = {}
    if output_format in ("jpeg", "webp"):
        save_kwargs["quality"] = options.quality
    image.save(buffer, format=PIL_FORMATS[output_format], **save_kwargs)
    optimized = buffer.getvalue()

    original_size = len(data)
    compression_ratio = round((1 - len(optimized) / original_size) * 100) if original_size else 0

    logger.debug(
        f"Optimized {filename}: {original_size} -> {len(optimized)} bytes ({compression_ratio}%), {width}x{height}"
    )

    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    extension = "jpg" if output_format == "jpeg" else output_format

    return OptimizedImageResult(
        data=optimized,
        filename=f"optimized_{stem}.{extension}",
        content_type=f"image/{output_format}",
        original_size=original_size,
        optimized_size=len(optimized),
        compression_ratio=compression_ratio,
        width=width,
        height=height,
    )


def analyze_image_quality(data: bytes) -> ImageQualityReport:
    """Score an image for AI processing and explain each deduction"""
    image = _open_image(data)
    width, height = image.size
    recommendations = []
    score = 100

    if width < MIN_RECOMMENDED_SIDE or height < MIN_RECOMMENDED_SIDE:
        recommendations.append("Image resolution is too low. Recommend at least 512x512 pixels.")
        score -= 30

    if width > MAX_RECOMMENDED_SIDE or height > MAX_RECOMMENDED_SIDE:
        recommendations.append(
            "Image resolution is very high. Consider resizing to 2048x2048 for optimal processing speed."
        )
        score -= 10

    if len(data) > MAX_RECOMMENDED_FILE_SIZE:
        recommendations.append("File size is large. Consider compression to improve upload speed.")
        score -= 15

    aspect_ratio = width / height
    if aspect_ratio > MAX_ASPECT_RATIO or aspect_ratio < MIN_ASPECT_RATIO:
        recommendations.append(
            "Extreme aspect ratio detected. Square or near-square images work best for AI processing."
        )
        score -= 20

    score = max(0, score)
    return ImageQualityReport(
        is_optimal=score >= 80,
        score=score,
        width=width,
        height=height,
        recommendations=recommendations,
    )


def should_bypass_all_processing(content_type: str, size: int) -> bool:
    """PNG files of reasonable size are already in the best shape for the model"""
    return content_type == "image/png" and size <= MAX_RECOMMENDED_FILE_SIZE


def process_image_raw(
    data: bytes, filename: str, content_type: str, options: RawProcessingOptions = None
) -> RawProcessingResult:
    """Keep the original bytes, or re-encode losslessly at native size when a format change is required"""
    options = options or RawProcessingOptions()

    if options.bypass_optimization:
        return RawProcessingResult(
            data=data,
            filename=filename,
            content_type=content_type,
            is_raw_mode=True,
            original_format=content_type,
            preserved_metadata=True,
            processing_applied=["none - raw mode"],
        )

    if options.maintain_original_format:
        return RawProcessingResult(
            data=data,
            filename=filename,
            content_type=content_type,
            is_raw_mode=True,
            original_format=content_type,
            preserved_metadata=True,
            processing_applied=["format-preserved"],
        )

    image = _open_image(data)
    save_kwargs = {}
    if options.preserve_metadata and image.info.get("exif"):
        save_kwargs["exif"] = image.info["exif"]

    buffer = io.BytesIO()
    image.save(buffer, format="PNG", **save_kwargs)

    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return RawProcessingResult(
        data=buffer.getvalue(),
        filename=f"{stem}.png",
        content_type="image/png",
        is_raw_mode=True,
        original_format=content_type,
        preserved_metadata=options.preserve_metadata,
        processing_applied=["format-conversion-lossless"],
    )

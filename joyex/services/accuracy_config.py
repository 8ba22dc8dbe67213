"""
Accuracy presets for the Seedream edit model.

A preset bounds how far the model may drift from the input images. Presets are
fixed, selected by name, and never derived from user input.
"""
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict

logger = logging.getLogger(__name__)

STANDARD = "standard"
ULTRA_CONSERVATIVE = "ultra-conservative"

# Policy bounds checked by validate_accuracy_config
MAX_STRENGTH = 0.2
MIN_INFERENCE_STEPS = 100
MIN_QUALITY_SCORE = 0.9


@dataclass(frozen=True)
class ImageProcessingPolicy:
    bypass_optimization: bool = True
    maintain_original_format: bool = True
    preserve_metadata: bool = True
    disable_enhancements: bool = True
    use_raw_mode: bool = True


@dataclass(frozen=True)
class QualityThresholds:
    min_file_size: int = 50 * 1024  # bytes
    max_dimensions: int = 0  # 0 = unlimited
    quality_score: float = 0.95


@dataclass(frozen=True)
class AccuracyConfig:
    """Named generation parameter bundle"""

    name: str
    strength: float  # 0-1, lower keeps more of the input image
    guidance: float
    guidance_scale: float
    num_inference_steps: int
    enable_safety_checker: bool
    image_processing: ImageProcessingPolicy = field(default_factory=ImageProcessingPolicy)
    quality_thresholds: QualityThresholds = field(default_factory=QualityThresholds)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


STANDARD_CONFIG = AccuracyConfig(
    name=STANDARD,
    strength=0.15,
    guidance=7.0,
    guidance_scale=7.0,
    num_inference_steps=150,
    enable_safety_checker=True,
    quality_thresholds=QualityThresholds(min_file_size=50 * 1024, max_dimensions=0, quality_score=0.95),
)

ULTRA_CONSERVATIVE_CONFIG = AccuracyConfig(
    name=ULTRA_CONSERVATIVE,
    strength=0.1,
    guidance=6.0,
    guidance_scale=6.0,
    num_inference_steps=200,
    enable_safety_checker=True,
    quality_thresholds=QualityThresholds(min_file_size=100 * 1024, max_dimensions=0, quality_score=0.98),
)

PRESETS: Dict[str, AccuracyConfig] = {
    STANDARD: STANDARD_CONFIG,
    ULTRA_CONSERVATIVE: ULTRA_CONSERVATIVE_CONFIG,
}


def get_accuracy_config(name: str = STANDARD) -> AccuracyConfig:
    """Return the preset registered under `name`, falling back to the standard preset"""
    config = PRESETS.get((name or STANDARD).strip().lower())
    if config is None:
        logger.warning(f"Unknown accuracy preset '{name}', using '{STANDARD}'")
        return STANDARD_CONFIG
    return config


def validate_accuracy_config(config: AccuracyConfig) -> bool:
    """Check a preset against the minimum fidelity policy. Never raises."""
    try:
        checks = [
            config.strength <= MAX_STRENGTH,
            config.num_inference_steps >= MIN_INFERENCE_STEPS,
            config.image_processing.use_raw_mode is True,
            config.quality_thresholds.quality_score >= MIN_QUALITY_SCORE,
        ]
    except (AttributeError, TypeError) as e:
        logger.warning(f"Accuracy config could not be validated: {e}")
        return False

    return all(checks)

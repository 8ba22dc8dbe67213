"""
Prompt templates for multi-image edit and competitor-style replace jobs.

Every function here is pure: same arguments, same string.
"""
from typing import Optional

from joyex.database.models import JobMode

QUALITY_REQUIREMENTS = """QUALITY REQUIREMENTS:
- Render at the highest resolution the model supports, with no visible compression artifacts
- Preserve every fine detail, texture and material of the original images where not modified
- Keep edges crisp and the focus sharp; do not soften or smear regions that were not edited
- Output a lossless PNG"""


def generate_multi_image_prompt(user_prompt: str, image_count: int) -> str:
    """Wrap a user instruction so the same edit is applied to every uploaded image"""
    return f"""TASK: Edit all {image_count} uploaded images according to the instruction below, applying the same change to each image.

USER REQUEST: {user_prompt}

{QUALITY_REQUIREMENTS}

EDITING RULES:
- Apply the requested change consistently across all {image_count} images
- Stay faithful to the input images: keep composition, subjects and important elements unless the request changes them
- Keep lighting direction, shadows, scale and proportions consistent within and between images
- Keep the original aspect ratio and resolution (or higher)
- Blend every change naturally so no edit boundary is visible
- When adding objects, integrate them with matching perspective, lighting and materials

STYLE: Photorealistic, natural and believable, indistinguishable from an unedited photograph."""


def generate_competitor_replace_prompt(addon_prompt: Optional[str] = None) -> str:
    """
    Build the product-substitution prompt.

    The reference images come first (competitor scene), followed by our product
    images. `addon_prompt` is appended verbatim when it has content.
    """
    base_prompt = f"""TASK: Replace the competitor product shown in the reference images with our product, keeping the advertising shot otherwise unchanged.

{QUALITY_REQUIREMENTS}

REPLACEMENT RULES:
- Swap the competitor product for our product with clean, professional compositing
- Preserve the background, setting and overall atmosphere of the reference scene
- Keep the same composition, camera angle and perspective
- Match lighting direction, intensity and color temperature on our product
- Keep realistic shadows, reflections and depth of field around the product
- Size and position our product so it sits naturally where the competitor product was
- Keep any text, logos or branding in the scene that do not belong to the competitor product
- Reproduce our product's shape, colors, materials and labels exactly as in its reference images

STYLE: Commercial product photography, photorealistic, with no visible editing artifacts."""

    if addon_prompt and addon_prompt.strip():
        return f"{base_prompt}\n\nADDITIONAL REQUIREMENTS: {addon_prompt}"

    return base_prompt


def build_prompt(
    mode: JobMode,
    user_prompt: str,
    image_count: int,
    addon_prompt: Optional[str] = None,
) -> str:
    """Select the template for the job mode and render the final prompt"""
    mode = JobMode(mode)

    if mode == JobMode.EDIT:
        return generate_multi_image_prompt(user_prompt, image_count)

    # Without an explicit addon the user's own instruction becomes the extra requirement
    addon = addon_prompt if addon_prompt and addon_prompt.strip() else user_prompt
    return generate_competitor_replace_prompt(addon)

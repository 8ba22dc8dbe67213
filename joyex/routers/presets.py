"""
Accuracy preset lookup
"""
from fastapi import APIRouter

from joyex.services.accuracy_config import get_accuracy_config, validate_accuracy_config

router = APIRouter(prefix="/accuracy-presets", tags=["presets"])


@router.get("/{name}")
async def get_preset(name: str):
    """
    Resolve a preset by name. Unknown names resolve to the standard preset.
    """
    config = get_accuracy_config(name)
    return {**config.to_dict(), "valid": validate_accuracy_config(config)}

"""
Database module for Joyex
"""
from .models import Base, Job, JobMode

__all__ = [
    "Base",
    "Job",
    "JobMode",
]

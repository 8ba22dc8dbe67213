"""
Middleware package for the API.
"""
from joyex.middleware.logging_middleware import (
    ContextualLogger,
    RequestLoggingMiddleware,
    bind_job_id,
    get_job_id,
    get_logger,
    get_request_id,
)

__all__ = [
    "RequestLoggingMiddleware",
    "ContextualLogger",
    "bind_job_id",
    "get_logger",
    "get_request_id",
    "get_job_id",
]

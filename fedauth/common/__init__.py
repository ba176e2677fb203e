"""
Common helpers and decorators for fedauth.
"""

from .utils import generate_id, generate_state, sanitize_dict
from .decorators import federation_boundary, log_execution_time

__all__ = [
    "generate_id",
    "generate_state",
    "sanitize_dict",
    "federation_boundary",
    "log_execution_time",
]

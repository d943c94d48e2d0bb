"""Shared utility functions and helpers"""
from judging.utils.database import get_or_none, paginate, run_atomic
from judging.utils.responses import format_error_response, format_success_response

__all__ = [
    "get_or_none",
    "paginate",
    "run_atomic",
    "format_error_response",
    "format_success_response",
]

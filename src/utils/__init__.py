"""
Utility helpers used by the import pipeline.

This subpackage exposes structured logging and error types, object id
generation, and the author and tag resolvers.
"""

from .errors import ERRORS, MigrationError, PostInsertError, TimestampFormatError, log_message, report_error, report_ok
from .ids import generate_object_id

__all__ = [
    "ERRORS",
    "MigrationError",
    "PostInsertError",
    "TimestampFormatError",
    "generate_object_id",
    "log_message",
    "report_error",
    "report_ok",
]

"""Utility functions for the job recommendations pipeline."""

from job_recommendations.utils.llm_output import (
    extract_bounded_integer,
    isolate_json_object,
    parse_json_object,
)

__all__ = [
    "extract_bounded_integer",
    "isolate_json_object",
    "parse_json_object",
]

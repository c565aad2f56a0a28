"""Record sources and query planning."""

from .base import RecordSource
from .file import FileRecordSource
from .metadata import classify_field, metadata_from_fields
from .odata import ODataRecordSource
from .query import QueryPlan, build_filter_expression, plan_query

__all__ = [
    "FileRecordSource",
    "ODataRecordSource",
    "QueryPlan",
    "RecordSource",
    "build_filter_expression",
    "classify_field",
    "metadata_from_fields",
    "plan_query",
]

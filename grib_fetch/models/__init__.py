"""
Data Models Layer.

This package contains the dataclasses and Pydantic models that define the core
data structures used throughout the application, such as index entries,
transfer plans, configuration and statistics.
"""

from .config import FetchConfig
from .index import ByteRange, IndexEntry, SelectionRequest, TransferPlan
from .stats import RangeResult, TransferResult, TransferStats

__all__ = [
    "ByteRange",
    "FetchConfig",
    "IndexEntry",
    "RangeResult",
    "SelectionRequest",
    "TransferPlan",
    "TransferResult",
    "TransferStats",
]

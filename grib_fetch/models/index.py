"""
Immutable value types describing index records, byte ranges and transfer plans.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class IndexEntry:
    """One GRIB message as described by a line of the .idx file."""

    sequence_number: int
    byte_offset: int
    date: str
    parameter_name: str
    level: str
    record_kind: str


@dataclass(frozen=True, order=True)
class ByteRange:
    """An inclusive byte interval ``[start, end]`` within the remote resource."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Range start must be non-negative, got {self.start}.")
        if self.end < self.start:
            raise ValueError(
                f"Range end ({self.end}) must not precede its start ({self.start})."
            )

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    @property
    def header_value(self) -> str:
        """The value for an HTTP ``Range`` header requesting this span."""
        return f"bytes={self.start}-{self.end}"

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class SelectionRequest:
    """
    Which parameters (and which of their levels) the caller wants.

    An empty level set selects every level of that parameter.
    """

    levels_by_parameter: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls, parameters: Mapping[str, Iterable[str]]
    ) -> "SelectionRequest":
        """Builds a request from the ``parameter -> [levels]`` config mapping."""
        return cls(
            {
                name: frozenset(levels or ())
                for name, levels in parameters.items()
            }
        )

    def matches(self, entry: IndexEntry) -> bool:
        levels = self.levels_by_parameter.get(entry.parameter_name)
        if levels is None:
            return False
        return not levels or entry.level in levels


@dataclass(frozen=True)
class TransferPlan:
    """The merged ranges to fetch from ``source_url`` into ``destination``."""

    ranges: tuple[ByteRange, ...]
    source_url: str
    destination: str

    @property
    def total_size(self) -> int:
        return sum(r.size for r in self.ranges)

    @property
    def max_end(self) -> int | None:
        if not self.ranges:
            return None
        return max(r.end for r in self.ranges)

    @property
    def is_empty(self) -> bool:
        return not self.ranges

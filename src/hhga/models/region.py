from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Optional, Pattern

from ..errors import RegionParseError


@dataclass(frozen=True)
class Region:
    """A contiguous span of a reference contig.

    Coordinates are 0-based half-open: ``start`` is inclusive, ``end``
    exclusive. ``end`` may be ``None`` for a region parsed without an end
    coordinate; it is filled in from the reference contig length by
    ``ReferenceProcessor.resolve_region``.
    """
    contig: str
    start: int = 0
    end: Optional[int] = None

    REGION_PATTERN: ClassVar[Pattern] = re.compile(r'^(?P<contig>[^:\s]+)(?::(?P<start>[\d,]+)(?:-(?P<end>[\d,]+))?)?$')

    def __post_init__(self):
        if not self.contig:
            raise RegionParseError("Region contig must be provided")
        if self.start < 0:
            raise RegionParseError(f"Region start must be non-negative, got {self.start}")
        if self.end is not None and self.end <= self.start:
            raise RegionParseError(f"Region start must be less than end ({self.start} >= {self.end})")

    @classmethod
    def parse(cls, region_string: str) -> "Region":
        """Parse ``chr:start-end``, ``chr:start`` or ``chr``.

        Args:
            region_string: Region string, 0-based start and exclusive end.
                Thousands separators are accepted.

        Returns:
            Region

        Raises:
            RegionParseError: if the string cannot be parsed or the span is empty
        """
        match = cls.REGION_PATTERN.match(region_string.strip()) if region_string else None
        if match is None:
            raise RegionParseError(f"Invalid region string: {region_string!r} (expected chr:start-end)")

        start = match.group('start')
        end = match.group('end')
        return cls(
            contig=match.group('contig'),
            start=int(start.replace(',', '')) if start else 0,
            end=int(end.replace(',', '')) if end else None,
        )

    @property
    def is_resolved(self) -> bool:
        return self.end is not None

    @property
    def length(self) -> int:
        if self.end is None:
            raise ValueError(f"Region {self} has no end coordinate")
        return self.end - self.start

    def contains(self, position: int) -> bool:
        return self.start <= position and (self.end is None or position < self.end)

    def overlaps(self, start: int, end: int) -> bool:
        """True if the half-open span ``[start, end)`` intersects this region."""
        return end > self.start and (self.end is None or start < self.end)

    def with_end(self, end: int) -> "Region":
        return Region(contig=self.contig, start=self.start, end=end)

    def __str__(self) -> str:
        if self.end is None:
            return f"{self.contig}:{self.start}"
        return f"{self.contig}:{self.start}-{self.end}"

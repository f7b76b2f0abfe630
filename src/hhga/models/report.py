from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import ReadError
from .matrix import Matrix
from .variants import VariantAnnotation


@dataclass(frozen=True)
class SkippedRead:
    source_index: Optional[int]
    read_name: Optional[str]
    error: str
    message: str

    def __str__(self) -> str:
        source = f"source {self.source_index}" if self.source_index is not None else "unknown source"
        return f"{self.error}: read {self.read_name} ({source}): {self.message}"


@dataclass
class RunWarnings:
    """Recoverable per-read failures collected alongside the report."""
    skipped: List[SkippedRead] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__), repr=False)

    def record(self, exc: ReadError, source_index: Optional[int] = None, read_name: Optional[str] = None) -> SkippedRead:
        entry = SkippedRead(
            source_index=source_index,
            read_name=read_name or exc.read_name,
            error=type(exc).__name__,
            message=str(exc),
        )
        self.skipped.append(entry)
        self.logger.warning(f"Skipping read: {entry}")
        return entry

    def extend(self, other: "RunWarnings") -> None:
        self.skipped.extend(other.skipped)

    def counts(self) -> Dict[str, int]:
        return dict(sorted(Counter(s.error for s in self.skipped).items()))

    def summary(self) -> str:
        if not self.skipped:
            return "No reads skipped"
        parts = ', '.join(f"{name}={count}" for name, count in self.counts().items())
        return f"Skipped {len(self.skipped)} reads ({parts})"

    def __len__(self) -> int:
        return len(self.skipped)

    def __bool__(self) -> bool:
        return bool(self.skipped)


@dataclass
class ReportResult:
    report: str
    matrix: Matrix
    annotations: List[VariantAnnotation] = field(default_factory=list)
    warnings: RunWarnings = field(default_factory=RunWarnings)

    def __str__(self) -> str:
        return self.report

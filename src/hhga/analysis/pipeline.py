"""Region report pipeline: decode, lay out, annotate and render."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from ..models.reads import AlignedRead
from ..models.reference import ReferenceWindow
from ..models.region import Region
from ..models.report import ReportResult, RunWarnings
from ..models.variants import VariantRecord
from .matrix_builder import ColumnMatrixBuilder
from .overlay import annotate
from .renderer import render_report

logger = logging.getLogger(__name__)


def build_report(
    region: Region,
    reference: ReferenceWindow,
    reads: Iterable[AlignedRead],
    variants: Optional[Iterable[VariantRecord]] = None,
    threads: int = 1,
    warnings: Optional[RunWarnings] = None,
    on_chunk: Optional[Callable[[int], None]] = None,
) -> ReportResult:
    """Build the alignment matrix for ``region`` and render it.

    Args:
        region: Resolved region to report on
        reference: Reference bases for ``region``
        reads: Aligned reads, in any order
        variants: Known variants to overlay, or None
        threads: Worker threads used to decode reads
        warnings: Collector for skipped reads; a new one is created if None
        on_chunk: Progress callback, see ``ColumnMatrixBuilder.build``

    Returns:
        ReportResult holding the rendered report, the matrix, the variant
        annotations and the skipped-read warnings

    Raises:
        ValueError: if ``reference`` does not cover ``region``
    """
    if reference.region != region:
        raise ValueError(f"Reference window {reference.region} does not match region {region}")
    if warnings is None:
        warnings = RunWarnings()

    builder = ColumnMatrixBuilder(region=region, reference=reference, threads=threads)
    matrix = builder.build(reads, warnings=warnings, on_chunk=on_chunk)

    annotations = annotate(matrix, variants)
    if variants is not None:
        logger.info(f"Annotated {len(annotations)} variant columns")

    report = render_report(matrix, annotations)
    if warnings:
        logger.warning(warnings.summary())
    return ReportResult(report=report, matrix=matrix, annotations=annotations, warnings=warnings)

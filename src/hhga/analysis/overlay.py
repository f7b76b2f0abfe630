from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from ..models.matrix import NO_COVERAGE, Matrix, MatrixRow
from ..models.variants import AlleleCall, AlleleMatch, VariantAnnotation, VariantRecord

logger = logging.getLogger(__name__)


def variant_span(matrix: Matrix, variant: VariantRecord) -> List[int]:
    """Column indices covered by a variant's reference allele.

    Only reference columns are used unless an alternate allele is longer
    than the reference allele; then the insertion columns following the
    last reference base are included so inserted bases become part of the
    observed allele. Returns an empty list when any reference base of the
    allele lies outside the matrix.
    """
    columns = matrix.columns
    first = columns.reference_column(variant.position)
    last = columns.reference_column(variant.end - 1)
    if first is None or last is None:
        return []

    span = [idx for idx in range(first, last + 1) if columns[idx].is_reference]
    if variant.is_insertion:
        after = columns.reference_column(variant.end)
        stop = after if after is not None else len(columns)
        span.extend(range(last + 1, stop))
    return span


def call_allele(row: MatrixRow, span: List[int], matrix: Matrix, variant: VariantRecord) -> AlleleCall:
    cells = [(idx, row.cells[idx]) for idx in span]
    for idx, cell in cells:
        if cell is NO_COVERAGE and matrix.columns[idx].is_reference:
            return AlleleCall(AlleleMatch.UNCOVERED)

    observed = ''.join(cell.base for _, cell in cells if cell is not NO_COVERAGE and not cell.is_gap)
    match, alt_index = variant.classify(observed)
    return AlleleCall(match, alt_index, observed)


def annotate(matrix: Matrix, variants: Optional[Iterable[VariantRecord]]) -> List[VariantAnnotation]:
    """Attach known variants to the reference columns at their positions.

    Matrix cells are left untouched. Variants on another contig or outside
    the matrix region are ignored; without a variant source this is a no-op.
    """
    if variants is None:
        return []

    annotations = []
    ordered = sorted(variants, key=lambda v: (v.position, v.ref, v.alts, v.ID))
    for variant in ordered:
        if variant.contig != matrix.region.contig:
            continue
        column = matrix.columns.reference_column(variant.position)
        if column is None:
            logger.debug(f"Variant {variant} lies outside {matrix.region}")
            continue

        span = variant_span(matrix, variant)
        if span:
            calls = {row_idx: call_allele(row, span, matrix, variant) for row_idx, row in enumerate(matrix.rows)}
        else:
            # reference allele runs past the region end, no row can be called
            logger.debug(f"Variant {variant} extends past {matrix.region}, reads left uncalled")
            calls = {row_idx: AlleleCall(AlleleMatch.UNCOVERED) for row_idx in range(len(matrix.rows))}
        annotation = VariantAnnotation(variant=variant, column=column, calls=calls)
        logger.debug(f"Variant {variant}: {annotation.ref_support} ref, {annotation.alt_support} alt reads")
        annotations.append(annotation)

    return annotations

from __future__ import annotations

from typing import List, Optional, Sequence

from ..models.events import GAP
from ..models.matrix import NO_COVERAGE, Cell, Matrix
from ..models.variants import AlleleMatch, VariantAnnotation

NO_COVERAGE_CHAR = ' '
MISSING_FIELD = '.'


def render_cell(cell: Cell) -> str:
    if cell is NO_COVERAGE:
        return NO_COVERAGE_CHAR
    return cell.base


def render_reference(matrix: Matrix) -> str:
    bases = []
    for idx in range(len(matrix.columns)):
        base = matrix.reference_base(idx)
        bases.append(base if base is not None else GAP)
    return ''.join(bases)


def _variant_field(annotations: Sequence[VariantAnnotation]) -> str:
    if not annotations:
        return MISSING_FIELD
    return ';'.join(str(a.variant) for a in annotations)


def _call_field(row_idx: int, annotations: Sequence[VariantAnnotation]) -> str:
    calls = []
    for annotation in annotations:
        call = annotation.calls.get(row_idx)
        if call is None or call.match == AlleleMatch.UNCOVERED:
            continue
        calls.append(f"{annotation.variant.position}:{call.label()}")
    return ';'.join(calls) if calls else MISSING_FIELD


def render_report(matrix: Matrix, annotations: Optional[Sequence[VariantAnnotation]] = None) -> str:
    """Serialize a matrix as aligned text.

    The first line is a ``#`` header with the region and matrix shape. The
    reference line and every read line start with one character per
    column, followed by tab-separated metadata: the known variants on the
    reference line, and name, source, strand, mapping quality and allele
    calls on each read line.
    """
    annotations = list(annotations or [])
    n_rows, n_cols = matrix.shape
    lines: List[str] = [f"#{matrix.region}\tcolumns={n_cols}\treads={n_rows}"]
    lines.append('\t'.join([render_reference(matrix), 'reference', _variant_field(annotations)]))

    for row_idx, row in enumerate(matrix.rows):
        read = row.read
        lines.append('\t'.join([
            ''.join(render_cell(cell) for cell in row.cells),
            read.name,
            str(read.source_index),
            read.strand,
            str(read.mapq),
            _call_field(row_idx, annotations),
        ]))

    return '\n'.join(lines)

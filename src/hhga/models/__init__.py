from .region import Region
from .reference import ReferenceWindow
from .reads import AlignedRead, CigarOp, Operation, parse_cigar
from .events import DecodedEvent, DecodedRead, EventKind, GAP
from .matrix import Column, ColumnIndex, Matrix, MatrixRow, NO_COVERAGE
from .variants import AlleleCall, AlleleMatch, VariantAnnotation, VariantRecord
from .report import ReportResult, RunWarnings, SkippedRead

__all__ = [
    'Region',
    'ReferenceWindow',
    'AlignedRead',
    'CigarOp',
    'Operation',
    'parse_cigar',
    'DecodedEvent',
    'DecodedRead',
    'EventKind',
    'GAP',
    'Column',
    'ColumnIndex',
    'Matrix',
    'MatrixRow',
    'NO_COVERAGE',
    'AlleleCall',
    'AlleleMatch',
    'VariantAnnotation',
    'VariantRecord',
    'ReportResult',
    'RunWarnings',
    'SkippedRead',
]

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

from ..models.events import EventKind
from ..models.matrix import NO_COVERAGE, Matrix

SITE_COLUMNS = [
    'column',
    'position',
    'offset',
    'ref_base',
    'depth',
    'matches',
    'mismatches',
    'insertions',
    'deletions',
    'mismatch_rate',
    'indel_rate',
    'error_rate',
    'mean_quality',
]


def _rate(count: int, depth: int) -> float:
    return count / depth if depth else np.nan


def site_statistics(matrix: Matrix) -> pd.DataFrame:
    """Per-column mismatch and indel counts and rates.

    Depth counts every covered cell in a column. For insertion columns the
    depth is the number of reads inserting there, so their ``indel_rate``
    is relative to those reads only.
    """
    records: List[Dict[str, object]] = []
    for idx, column in enumerate(matrix.columns):
        counts = {kind: 0 for kind in EventKind}
        qualities = []
        for cell in matrix.column_cells(idx):
            if cell is NO_COVERAGE:
                continue
            counts[cell.kind] += 1
            if cell.quality is not None:
                qualities.append(cell.quality)

        depth = sum(counts.values())
        indels = counts[EventKind.INSERTION] + counts[EventKind.DELETION]
        errors = counts[EventKind.MISMATCH] + indels
        records.append({
            'column': idx,
            'position': column.position,
            'offset': column.offset if column.is_insertion else -1,
            'ref_base': matrix.reference_base(idx) or '-',
            'depth': depth,
            'matches': counts[EventKind.MATCH],
            'mismatches': counts[EventKind.MISMATCH],
            'insertions': counts[EventKind.INSERTION],
            'deletions': counts[EventKind.DELETION],
            'mismatch_rate': _rate(counts[EventKind.MISMATCH], depth),
            'indel_rate': _rate(indels, depth),
            'error_rate': _rate(errors, depth),
            'mean_quality': float(np.mean(qualities)) if qualities else np.nan,
        })

    if not records:
        return pd.DataFrame(columns=SITE_COLUMNS)
    return pd.DataFrame(records, columns=SITE_COLUMNS)


def export_site_stats_tsv(frame: pd.DataFrame, output_path: Path) -> pd.DataFrame:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(output_path, sep="\t", index=False, na_rep='NA')
    return frame

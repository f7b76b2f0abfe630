from __future__ import annotations

import math

import pandas as pd

from hhga.analysis.matrix_builder import ColumnMatrixBuilder
from hhga.analysis.stats import SITE_COLUMNS, export_site_stats_tsv, site_statistics
from hhga.models.reads import AlignedRead, parse_cigar
from hhga.models.reference import ReferenceWindow
from hhga.models.region import Region

REGION = Region("chr1", 100, 110)
REFERENCE = ReferenceWindow(REGION, "ACGTACGTAC")


def build_read(name: str, cigar: str, sequence: str, start: int = 100, file_order: int = 0, qualities=None):
    return AlignedRead(
        source_index=0,
        name=name,
        contig="chr1",
        reference_start=start,
        operations=parse_cigar(cigar),
        sequence=sequence,
        qualities=qualities,
        mapq=60,
        file_order=file_order,
    )


def build_matrix(*reads):
    return ColumnMatrixBuilder(region=REGION, reference=REFERENCE).build(reads)


def test_site_statistics_columns_and_shape():
    matrix = build_matrix(
        build_read("ins", "5M2I5M", "ACGTATTCGTAC"),
        build_read("plain", "10M", "ACGTACGTAC", file_order=1),
    )
    frame = site_statistics(matrix)

    assert list(frame.columns) == SITE_COLUMNS
    assert len(frame) == 12
    assert frame["column"].tolist() == list(range(12))
    assert frame["offset"].tolist() == [-1] * 5 + [0, 1] + [-1] * 5
    assert frame.loc[5, "ref_base"] == "-"
    assert frame.loc[4, "ref_base"] == "A"


def test_insertion_columns_count_inserting_reads_only():
    matrix = build_matrix(
        build_read("ins", "5M2I5M", "ACGTATTCGTAC"),
        build_read("plain", "10M", "ACGTACGTAC", file_order=1),
    )
    frame = site_statistics(matrix)

    insertion = frame.loc[5]
    assert insertion["depth"] == 1
    assert insertion["insertions"] == 1
    assert insertion["indel_rate"] == 1.0
    assert frame.loc[4, "depth"] == 2
    assert frame.loc[4, "error_rate"] == 0.0


def test_mismatch_and_deletion_rates():
    matrix = build_matrix(
        build_read("mm", "10M", "ACGTATGTAC"),
        build_read("del", "5M1D4M", "ACGTAGTAC", file_order=1),
    )
    frame = site_statistics(matrix)

    assert frame.loc[5, "mismatches"] == 1
    assert frame.loc[5, "deletions"] == 1
    assert frame.loc[5, "mismatch_rate"] == 0.5
    assert frame.loc[5, "indel_rate"] == 0.5
    assert frame.loc[5, "error_rate"] == 1.0
    assert frame.loc[0, "matches"] == 2


def test_uncovered_columns_have_no_rates():
    frame = site_statistics(build_matrix(build_read("short", "5M", "ACGTA", qualities=(10, 20, 30, 40, 50))))

    assert frame.loc[7, "depth"] == 0
    assert math.isnan(frame.loc[7, "mismatch_rate"])
    assert math.isnan(frame.loc[7, "mean_quality"])
    assert frame.loc[2, "mean_quality"] == 30.0


def test_site_statistics_without_reads():
    frame = site_statistics(build_matrix())
    assert len(frame) == 10
    assert (frame["depth"] == 0).all()


def test_export_site_stats_tsv(tmp_path):
    matrix = build_matrix(build_read("short", "5M", "ACGTA"))
    frame = site_statistics(matrix)
    output_path = tmp_path / "nested" / "sites.tsv"

    export_site_stats_tsv(frame, output_path)

    assert output_path.exists()
    loaded = pd.read_csv(output_path, sep="\t")
    assert list(loaded.columns) == SITE_COLUMNS
    assert len(loaded) == 10
    assert loaded["depth"].tolist() == [1] * 5 + [0] * 5
    assert "NA" in output_path.read_text()

from __future__ import annotations

from pathlib import Path

import pysam
import pytest

CONTIG_LENGTH = 200
CHR1 = "ACGTACGTAC" * 20
CHR2 = "TTTTGGGGCC" * 5

HEADER = {
    "HD": {"VN": "1.6", "SO": "coordinate"},
    "SQ": [{"SN": "chr1", "LN": CONTIG_LENGTH}, {"SN": "chr2", "LN": len(CHR2)}],
}


def make_segment(header, name, start, cigar, sequence, mapq=60, reverse=False, contig_id=0):
    segment = pysam.AlignedSegment(header)
    segment.query_name = name
    segment.reference_id = contig_id
    segment.reference_start = start
    segment.mapping_quality = mapq
    segment.cigarstring = cigar
    segment.query_sequence = sequence
    segment.query_qualities = pysam.qualitystring_to_array("I" * len(sequence))
    segment.flag = 16 if reverse else 0
    return segment


def write_bam(path: Path, reads, index: bool = True) -> Path:
    with pysam.AlignmentFile(str(path), "wb", header=HEADER) as out:
        header = out.header
        for read in sorted(reads, key=lambda r: (r.get("contig_id", 0), r["start"])):
            out.write(make_segment(header, **read))
    if index:
        pysam.index(str(path))
    return path


@pytest.fixture
def fasta_file(tmp_path):
    path = tmp_path / "ref.fa"
    path.write_text(f">chr1\n{CHR1}\n>chr2\n{CHR2}\n")
    return path


@pytest.fixture
def bam_files(tmp_path):
    first = write_bam(tmp_path / "sample1.bam", [
        {"name": "r1", "start": 100, "cigar": "10M", "sequence": "ACGTACGTAC"},
        {"name": "r2", "start": 100, "cigar": "5M2I5M", "sequence": "ACGTATTCGTAC"},
        {"name": "far", "start": 150, "cigar": "10M", "sequence": "ACGTACGTAC"},
    ])
    second = write_bam(tmp_path / "sample2.bam", [
        {"name": "r3", "start": 102, "cigar": "8M", "sequence": "GTGCGTAC"},
        {"name": "lowq", "start": 104, "cigar": "4M", "sequence": "ACGT", "mapq": 5, "reverse": True},
    ])
    return [first, second]


@pytest.fixture
def vcf_file(tmp_path):
    path = tmp_path / "variants.vcf"
    path.write_text(
        "##fileformat=VCFv4.2\n"
        f"##contig=<ID=chr1,length={CONTIG_LENGTH}>\n"
        f"##contig=<ID=chr2,length={len(CHR2)}>\n"
        "#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\n"
        "chr1\t105\tsnv1\tA\tG\t50\tPASS\t.\n"
        "chr1\t160\tsnv2\tA\tT\t50\tPASS\t.\n"
        "chr2\t3\tsnv3\tT\tA\t50\tPASS\t.\n"
    )
    return path

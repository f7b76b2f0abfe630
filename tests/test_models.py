from __future__ import annotations

import pytest

from hhga.errors import MalformedAlignmentError, RegionParseError
from hhga.models.reads import AlignedRead, CigarOp, Operation, operations_from_cigartuples, parse_cigar, validate_operations
from hhga.models.reference import ReferenceWindow
from hhga.models.region import Region


### region tests

def test_region_parse_full():
    region = Region.parse("chr1:100-110")
    assert region.contig == "chr1"
    assert region.start == 100
    assert region.end == 110
    assert region.length == 10
    assert str(region) == "chr1:100-110"


def test_region_parse_thousands_separators():
    region = Region.parse("chrX:1,000-2,500")
    assert (region.start, region.end) == (1000, 2500)


def test_region_parse_open_ended():
    region = Region.parse("chr2:50")
    assert region.start == 50
    assert region.end is None
    assert not region.is_resolved

    whole = Region.parse("chr3")
    assert whole.start == 0
    assert whole.end is None
    assert whole.with_end(300) == Region("chr3", 0, 300)


@pytest.mark.parametrize("bad", ["", "chr1:", "chr1:10-", "chr1:abc-20", "chr1:20-10", "chr1:10-10"])
def test_region_parse_invalid(bad):
    with pytest.raises(RegionParseError):
        Region.parse(bad)


def test_region_parse_error_is_value_error():
    with pytest.raises(ValueError):
        Region.parse("chr1:5-1")


def test_region_overlap_and_contains():
    region = Region("chr1", 100, 110)
    assert region.contains(100)
    assert region.contains(109)
    assert not region.contains(110)
    assert not region.contains(99)
    assert region.overlaps(95, 101)
    assert region.overlaps(109, 120)
    assert not region.overlaps(90, 100)
    assert not region.overlaps(110, 120)


### reference window tests

def test_reference_window_uppercases_and_bounds():
    window = ReferenceWindow(Region("chr1", 100, 105), "acgTA")
    assert window.sequence == "ACGTA"
    assert len(window) == 5
    assert window.base_at(100) == "A"
    assert window.base_at(104) == "A"
    assert window.base_at(105) is None
    assert window.base_at(99) is None


def test_reference_window_length_must_match_region():
    with pytest.raises(ValueError):
        ReferenceWindow(Region("chr1", 100, 105), "ACG")


### operation tests

def test_parse_cigar():
    ops = parse_cigar("2S5M2I3D5M1H")
    assert [op.kind for op in ops] == [
        CigarOp.SOFT_CLIP, CigarOp.MATCH, CigarOp.INSERTION, CigarOp.DELETION, CigarOp.MATCH, CigarOp.HARD_CLIP
    ]
    assert [op.length for op in ops] == [2, 5, 2, 3, 5, 1]


def test_parse_cigar_maps_extended_ops():
    ops = parse_cigar("3=1X2N1P4M")
    # padding is dropped, =/X fold into MATCH and N into DELETION
    assert [(op.kind, op.length) for op in ops] == [
        (CigarOp.MATCH, 3), (CigarOp.MATCH, 1), (CigarOp.DELETION, 2), (CigarOp.MATCH, 4)
    ]


@pytest.mark.parametrize("bad", ["", "*", "5Q", "M5", "5M2"])
def test_parse_cigar_invalid(bad):
    with pytest.raises(MalformedAlignmentError):
        parse_cigar(bad)


def test_operations_from_cigartuples_rejects_unknown_code():
    with pytest.raises(MalformedAlignmentError):
        operations_from_cigartuples([(0, 5), (9, 1)])
    with pytest.raises(MalformedAlignmentError):
        operations_from_cigartuples([(0, 0)])


@pytest.mark.parametrize("cigar", ["5M1H5M", "5M2S5M", "2I", "3S2H", "2S3I"])
def test_validate_operations_rejects(cigar):
    with pytest.raises(MalformedAlignmentError):
        validate_operations(parse_cigar(cigar))


@pytest.mark.parametrize("cigar", ["10M", "1H2S5M2S1H", "5M2I5M", "2S3M", "1I5M"])
def test_validate_operations_accepts(cigar):
    validate_operations(parse_cigar(cigar))


def test_validate_operations_empty():
    with pytest.raises(MalformedAlignmentError):
        validate_operations(())


### aligned read tests

def make_read(cigar: str, sequence: str, start: int = 100, name: str = "r1") -> AlignedRead:
    return AlignedRead(
        source_index=0,
        name=name,
        contig="chr1",
        reference_start=start,
        operations=parse_cigar(cigar),
        sequence=sequence,
        mapq=60,
    )


def test_aligned_read_spans():
    read = make_read("2S5M2I3D5M1H", "TT" + "ACGTA" + "GG" + "CGTAC")
    assert read.reference_length == 13
    assert read.reference_end == 113
    assert read.query_consumed == len(read.sequence)
    assert read.cigar == "2S5M2I3D5M1H"
    assert read.cigar_stats == {"SOFT_CLIP": 2, "MATCH": 10, "INSERTION": 2, "DELETION": 3, "HARD_CLIP": 1}


def test_aligned_read_quality_length_checked():
    with pytest.raises(MalformedAlignmentError):
        AlignedRead(
            source_index=0,
            name="r1",
            contig="chr1",
            reference_start=100,
            operations=(Operation(CigarOp.MATCH, 3),),
            sequence="ACG",
            qualities=(30, 30),
        )


def test_aligned_read_sort_key():
    a = make_read("5M", "ACGTA", start=100)
    b = AlignedRead(1, "r2", "chr1", 100, parse_cigar("5M"), "ACGTA", file_order=0)
    c = make_read("5M", "ACGTA", start=99)
    assert sorted([a, b, c], key=lambda r: r.sort_key) == [c, a, b]


def test_aligned_read_placement_start():
    assert make_read("1I4M", "GACGT").placement_start == 99
    assert make_read("2S1I4M", "TTGACGT").placement_start == 99
    assert make_read("4M1I", "ACGTG").placement_start == 100

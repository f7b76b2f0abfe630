from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional, Tuple


class AlleleMatch(Enum):
    """How a read's observed bases relate to a known variant."""
    REFERENCE = auto()
    ALTERNATE = auto()
    OTHER = auto()
    UNCOVERED = auto()


@dataclass(frozen=True)
class VariantRecord:
    """A known variant from a VCF record. ``position`` is 0-based."""
    contig: str
    position: int
    ref: str
    alts: Tuple[str, ...] = ()
    ID: str = '.'

    @classmethod
    def from_pysam_record(cls, record) -> "VariantRecord":
        """Construct VariantRecord from a pysam VariantRecord.

        Raises:
            ValueError: If the record has no reference allele
        """
        if not record.ref:
            raise ValueError(f"VCF record at {record.chrom}:{record.pos} has no reference allele")
        return cls(
            contig=str(record.chrom),
            position=int(record.start),
            ref=str(record.ref).upper(),
            alts=tuple(str(alt).upper() for alt in (record.alts or ())),
            ID=str(record.id) if record.id is not None else '.',
        )

    def __post_init__(self):
        if self.position < 0:
            raise ValueError("Position must be non-negative.")

    @property
    def end(self) -> int:
        return self.position + len(self.ref)

    @property
    def is_insertion(self) -> bool:
        return any(len(alt) > len(self.ref) for alt in self.alts)

    def classify(self, observed: str) -> Tuple[AlleleMatch, Optional[int]]:
        """Compare an observed allele string to the reference and alternate alleles.

        Returns:
            (AlleleMatch, 1-based alternate index or None)
        """
        observed = observed.upper()
        if observed == self.ref:
            return AlleleMatch.REFERENCE, None
        for idx, alt in enumerate(self.alts, start=1):
            if observed == alt:
                return AlleleMatch.ALTERNATE, idx
        return AlleleMatch.OTHER, None

    def __str__(self) -> str:
        alts = ','.join(self.alts) if self.alts else '.'
        return f"{self.position}:{self.ref}>{alts}"


@dataclass(frozen=True)
class AlleleCall:
    match: AlleleMatch
    alt_index: Optional[int] = None
    observed: str = ''

    def label(self) -> str:
        if self.match == AlleleMatch.REFERENCE:
            return 'ref'
        if self.match == AlleleMatch.ALTERNATE:
            return f"alt{self.alt_index}"
        if self.match == AlleleMatch.OTHER:
            return 'other'
        return 'none'


@dataclass(frozen=True)
class VariantAnnotation:
    """A known variant attached to the reference column at its position.

    ``calls`` maps matrix row index to the allele that row's read shows.
    """
    variant: VariantRecord
    column: int
    calls: Dict[int, AlleleCall] = field(default_factory=dict)

    def rows_matching(self, match: AlleleMatch):
        return [row for row, call in sorted(self.calls.items()) if call.match == match]

    @property
    def alt_support(self) -> int:
        return len(self.rows_matching(AlleleMatch.ALTERNATE))

    @property
    def ref_support(self) -> int:
        return len(self.rows_matching(AlleleMatch.REFERENCE))

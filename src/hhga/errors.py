"""Exception types raised while building alignment matrices."""

from __future__ import annotations


class HHGAError(Exception):
    pass


class SourceOpenError(HHGAError):
    """An alignment, reference or variant file could not be opened."""


class OutOfBoundsError(HHGAError):
    """Unknown contig, or a region that runs past the end of its contig."""


class RegionParseError(HHGAError, ValueError):
    pass


class ReadError(HHGAError):
    """Base for errors confined to a single read.

    These never abort matrix construction; the offending read is skipped
    and recorded in the run's warnings.
    """

    def __init__(self, message: str, read_name: str = None):
        super().__init__(message)
        self.read_name = read_name


class MalformedAlignmentError(ReadError):
    pass


class CigarLengthMismatchError(ReadError):
    pass

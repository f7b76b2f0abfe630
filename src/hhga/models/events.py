from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple

from .reads import AlignedRead

GAP = '-'


class EventKind(Enum):
    MATCH = auto()
    MISMATCH = auto()
    INSERTION = auto()
    DELETION = auto()
    CLIP = auto()


@dataclass(frozen=True)
class DecodedEvent:
    """One consumed read base or one deleted reference base.

    ``reference_position`` is None for insertions and clips. Insertion
    events instead carry ``anchor``, the reference position immediately
    preceding them, and ``offset``, their index within the inserted run.
    """
    kind: EventKind
    base: str
    quality: Optional[int] = None
    reference_position: Optional[int] = None
    anchor: Optional[int] = None
    offset: int = 0

    @property
    def is_gap(self) -> bool:
        return self.base == GAP

    @property
    def is_error(self) -> bool:
        return self.kind in (EventKind.MISMATCH, EventKind.INSERTION, EventKind.DELETION)


@dataclass(frozen=True)
class DecodedRead:
    read: AlignedRead
    events: Tuple[DecodedEvent, ...]

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

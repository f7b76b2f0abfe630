from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .region import Region


@dataclass(frozen=True)
class ReferenceWindow:
    """Reference bases covering ``region``; ``sequence[i]`` is the base at ``region.start + i``."""
    region: Region
    sequence: str

    def __post_init__(self):
        if not self.region.is_resolved:
            raise ValueError(f"Reference window needs a region with an end coordinate, got {self.region}")
        if len(self.sequence) != self.region.length:
            raise ValueError(f"Reference window for {self.region} has {len(self.sequence)} bases, expected {self.region.length}")
        object.__setattr__(self, 'sequence', self.sequence.upper())

    def __len__(self) -> int:
        return len(self.sequence)

    def base_at(self, position: int) -> Optional[str]:
        if not self.region.contains(position):
            return None
        return self.sequence[position - self.region.start]

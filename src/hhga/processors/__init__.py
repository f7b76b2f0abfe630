from __future__ import annotations

from .reference import ReferenceProcessor
from .reads import ReadProcessor, ReadStreamMerger
from .vcf import VCFProcessor, load_variants

__all__ = [
    'ReferenceProcessor',
    'ReadProcessor',
    'ReadStreamMerger',
    'VCFProcessor',
    'load_variants',
]

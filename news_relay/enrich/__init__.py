"""
Item enrichment.

This package resolves article images and descriptions for selected
feed items.
"""

from .enricher import Enricher, SourceProfile, UNKNOWN_SOURCE
from .extractor import extract_description
from .images import ImagePatterns, extract_meta_image

__all__ = [
    "Enricher",
    "SourceProfile",
    "UNKNOWN_SOURCE",
    "extract_description",
    "ImagePatterns",
    "extract_meta_image",
]

from __future__ import annotations

from typing import Mapping


def normalize_category(label: str, translations: Mapping[str, str]) -> str:
    """Map a raw feed label to its canonical slug.

    Labels missing from the translation table are lower-cased and used as is.
    """
    label = label.strip()
    slug = translations.get(label)
    if slug is None:
        return label.lower()
    return slug

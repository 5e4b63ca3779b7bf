"""
Article image extraction and placeholder detection.

Sources serve a generic image when an article has none of its own yet.
ImagePatterns recognises that placeholder and the shape of a proper
per-article image URL.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

from bs4 import BeautifulSoup


@dataclass(frozen=True)
class ImagePatterns:
    """Compiled image URL patterns of one source.

    A missing pattern never matches.
    """

    placeholder: re.Pattern[str] | None = None
    valid: re.Pattern[str] | None = None

    @classmethod
    def compile(cls, placeholder: str | None, valid: str | None) -> "ImagePatterns":
        return cls(
            placeholder=re.compile(placeholder) if placeholder else None,
            valid=re.compile(valid) if valid else None,
        )

    def is_placeholder(self, url: str) -> bool:
        return bool(url) and self.placeholder is not None and self.placeholder.fullmatch(url) is not None

    def is_valid(self, url: str) -> bool:
        return bool(url) and self.valid is not None and self.valid.fullmatch(url) is not None


def extract_meta_image(html: str) -> str:
    """Return the og:image URL of a page, or an empty string."""
    soup = BeautifulSoup(html, "html.parser")
    tag = soup.find("meta", attrs={"property": "og:image"})
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()

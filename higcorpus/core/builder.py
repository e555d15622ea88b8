"""
Authoring helpers for HIG documents.

Documents normally arrive from the external extraction process. These
helpers build one by hand from plain markdown: they derive the id and the
content flags, estimate a quality score when none is known, and append the
attribution notice.
"""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from ..utils.attribution import quality_notice_for, render_attribution
from ..utils.data_models import Document

logger = logging.getLogger(__name__)

PLATFORM_TITLE_PREFIX = re.compile(r"^(iOS|macOS|watchOS|tvOS|visionOS)\s+", re.IGNORECASE)
HEADING_PATTERN = re.compile(r"^#+\s", re.MULTILINE)
QUALITY_TERMS = ["apple", "ios", "macos", "interface", "design", "guidelines"]


def slugify(title: str) -> str:
    """'iOS Buttons & Toggles' -> 'buttons-toggles'."""
    slug = PLATFORM_TITLE_PREFIX.sub("", title).lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def calculate_quality_score(content: str) -> float:
    """
    Heuristic quality estimate in [0, 1].

    Length contributes up to 0.3 (saturating at 2000 characters), HIG
    vocabulary up to 0.3, headings up to 0.2 (saturating at five), and code
    and images 0.1 each.
    """
    if not content:
        return 0.0

    lowered = content.lower()
    score = min(len(content) / 2000, 1) * 0.3
    found_terms = sum(1 for term in QUALITY_TERMS if term in lowered)
    score += found_terms / len(QUALITY_TERMS) * 0.3
    score += min(len(HEADING_PATTERN.findall(content)) / 5, 1) * 0.2
    if "`" in content:
        score += 0.1
    if "![" in content or "<img" in content:
        score += 0.1
    return round(min(score, 1.0), 3)


def build_document(
    title: str,
    platform: str,
    category: str,
    url: str,
    content: str,
    id: Optional[str] = None,
    keywords: Optional[List[str]] = None,
    last_updated: Optional[datetime] = None,
    extraction_method: str = "manual",
    quality_score: Optional[float] = None,
    confidence: Optional[float] = None,
) -> Document:
    """
    Builds a complete Document from markdown content.

    The id defaults to ``<platform>-<slugified title>``. The body is the
    content followed by the attribution notice, whose quality sentence
    follows the score.
    """
    content = content.strip("\n")
    if quality_score is None:
        quality_score = calculate_quality_score(content)
    document_id = id or f"{platform.lower()}-{slugify(title)}"
    body = content + "\n" + render_attribution(
        url, quality_notice_for(quality_score, extraction_method)
    )
    logger.debug(f"Built document '{document_id}' ({len(content)} characters).")
    return Document(
        id=document_id,
        title=title,
        platform=platform,
        category=category,
        url=url,
        last_updated=last_updated or datetime.now(timezone.utc),
        extraction_method=extraction_method,
        quality_score=quality_score,
        confidence=confidence,
        content_length=len(content),
        has_code_examples="```" in content,
        has_images="![" in content or "<img" in content,
        keywords=list(keywords or []),
        body=body,
    )

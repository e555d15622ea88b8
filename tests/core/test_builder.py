from datetime import datetime, timezone

import pytest

from higcorpus.core.builder import build_document, calculate_quality_score, slugify
from higcorpus.core.validation import CorpusValidator
from higcorpus.utils.attribution import (
    FALLBACK_NOTICE,
    HIGH_QUALITY_NOTICE,
    has_attribution,
)
from higcorpus.utils.frontmatter import parse_document, render_document

MATERIALS = """# Materials

Materials impart translucency and blur to create a sense of depth.

```swift
Text("Hello").background(.regularMaterial)
```

![A sidebar over a photo](materials.png)
"""


@pytest.mark.parametrize(
    "title, slug",
    [
        ("iOS Buttons & Toggles", "buttons-toggles"),
        ("Color", "color"),
        ("  Dark   Mode  ", "dark-mode"),
        ("visionOS Spatial layout", "spatial-layout"),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


def test_calculate_quality_score():
    assert calculate_quality_score("") == 0.0
    assert calculate_quality_score("# Design\n") == pytest.approx(0.091, abs=1e-3)

    rich = "# Apple\n## iOS\n## macOS\n## Interface\n## Design Guidelines\n```\n![x](y)\n"
    rich += "x" * 2000
    assert calculate_quality_score(rich) == pytest.approx(1.0)


def test_build_document_derives_metadata():
    """Tests that the id, flags and attribution come from the content."""
    document = build_document(
        title="Materials",
        platform="visionOS",
        category="color-and-materials",
        url="https://developer.apple.com/design/human-interface-guidelines/materials",
        content=MATERIALS,
        keywords=["materials", "depth"],
        last_updated=datetime(2025, 6, 1, 12, 0, 0, 123000, tzinfo=timezone.utc),
        quality_score=0.9,
        confidence=0.8,
    )

    assert document.id == "visionos-materials"
    assert document.has_code_examples is True
    assert document.has_images is True
    assert document.content_length == len(MATERIALS.strip("\n"))
    assert document.content == MATERIALS.strip("\n")
    assert has_attribution(document.body)
    assert HIGH_QUALITY_NOTICE in document.body

    assert parse_document(render_document(document)) == document
    assert CorpusValidator().validate([document]).is_valid


def test_build_document_estimates_missing_score():
    document = build_document(
        title="Tiny",
        platform="ios",
        category="layout",
        url="https://developer.apple.com/design/human-interface-guidelines/tiny",
        content="Short.",
        extraction_method="fallback",
    )
    assert document.quality_score == calculate_quality_score("Short.")
    assert document.is_fallback
    assert FALLBACK_NOTICE in document.body

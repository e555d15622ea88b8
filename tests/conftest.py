"""
Configuration file for pytest.

This file adds the project's root directory to the Python path so that
pytest can find the 'higcorpus' package without needing to install it, and
provides document texts shared by the test modules.
"""

import sys
from pathlib import Path

import pytest

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from higcorpus.utils.attribution import HIGH_QUALITY_NOTICE, render_attribution  # noqa: E402

BOXES_URL = "https://developer.apple.com/design/human-interface-guidelines/boxes"

BOXES_CONTENT = """# Boxes

A box groups related information and controls into one visually distinct region.

## Best practices

Keep boxes small relative to the view that contains them.
"""


def make_document_text(
    id="universal-boxes",
    title="Boxes",
    platform="universal",
    category="visual-design",
    quality_score="0.850",
    has_images="true",
    attribution=True,
):
    """Builds the text of a document file in the extraction output format."""
    body = BOXES_CONTENT
    if attribution:
        body += render_attribution(BOXES_URL, HIGH_QUALITY_NOTICE)
    return (
        "---\n"
        f'title: "{title}"\n'
        f"platform: {platform}\n"
        f"category: {category}\n"
        f"url: {BOXES_URL}\n"
        f"id: {id}\n"
        "lastUpdated: 2025-07-20T21:41:15.934Z\n"
        "extractionMethod: crawlee\n"
        f"qualityScore: {quality_score}\n"
        "confidence: 0.900\n"
        "contentLength: 1520\n"
        "hasCodeExamples: false\n"
        f"hasImages: {has_images}\n"
        'keywords: ["boxes", "grouping", "visual design"]\n'
        "---\n" + body
    )


@pytest.fixture
def document_text():
    return make_document_text()


@pytest.fixture
def corpus_dir(tmp_path):
    """A corpus directory with two valid documents on two platforms."""
    root = tmp_path / "corpus"
    universal = root / "platforms" / "universal"
    ios = root / "platforms" / "ios"
    universal.mkdir(parents=True)
    ios.mkdir(parents=True)
    (universal / "universal-boxes.md").write_text(make_document_text(), encoding="utf-8")
    (ios / "ios-toggles.md").write_text(
        make_document_text(
            id="ios-toggles", title="Toggles", platform="ios", category="selection-and-input"
        ),
        encoding="utf-8",
    )
    return root

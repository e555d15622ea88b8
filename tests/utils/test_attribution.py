from higcorpus.utils.attribution import (
    ATTRIBUTION_CLOSING,
    ATTRIBUTION_HEADING,
    FALLBACK_NOTICE,
    HIGH_QUALITY_NOTICE,
    MODERATE_QUALITY_NOTICE,
    has_attribution,
    quality_notice_for,
    render_attribution,
    strip_attribution,
)

URL = "https://developer.apple.com/design/human-interface-guidelines/color"


def test_render_attribution_layout():
    block = render_attribution(URL, HIGH_QUALITY_NOTICE)
    lines = block.split("\n")

    assert lines[:4] == ["", "---", "", ATTRIBUTION_HEADING]
    assert f"This content is sourced from Apple's Human Interface Guidelines: {URL}" in lines
    assert HIGH_QUALITY_NOTICE in lines
    assert block.endswith(ATTRIBUTION_CLOSING + "\n")


def test_render_attribution_without_url_or_notice():
    block = render_attribution()
    assert "This content is sourced from Apple's Human Interface Guidelines." in block
    assert HIGH_QUALITY_NOTICE not in block
    assert has_attribution("# Title\n" + block)


def test_has_attribution_ignores_trailing_whitespace():
    body = "# Color\n\nText.\n" + render_attribution(URL) + "\n\n  \n"
    assert has_attribution(body)


def test_has_attribution_rejects_altered_notice():
    body = "# Color\n" + render_attribution(URL)
    assert not has_attribution(body.replace("fair use", "fair-ish use"))
    assert not has_attribution(body + "\nTrailing paragraph.\n")
    assert not has_attribution("# Color\n\nText.\n")


def test_strip_attribution_returns_the_content():
    content = "# Color\n\nUse color sparingly.\n\n---\n\nA rule inside the content."
    body = content + "\n" + render_attribution(URL, MODERATE_QUALITY_NOTICE)
    assert strip_attribution(body) == content


def test_strip_attribution_leaves_unattributed_bodies_alone():
    body = "# Color\n\nText.\n"
    assert strip_attribution(body) == body


def test_quality_notice_for():
    assert quality_notice_for(0.92, "crawlee") == HIGH_QUALITY_NOTICE
    assert quality_notice_for(0.3, "fallback") == FALLBACK_NOTICE
    assert quality_notice_for(0.5, "crawlee") == MODERATE_QUALITY_NOTICE
    assert quality_notice_for(None) == MODERATE_QUALITY_NOTICE

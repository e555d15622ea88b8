"""
The attribution notice that closes every HIG document body.

The notice credits Apple's Human Interface Guidelines as the source of the
content. Its tail (the fair-use disclaimer and the closing sentence) is fixed
boilerplate; the source line and the quality notice vary per document.
"""

from typing import Optional

ATTRIBUTION_HEADING = "**Attribution Notice**"

ATTRIBUTION_DISCLAIMER = (
    "© Apple Inc. All rights reserved. This content is provided for educational "
    "and development purposes under fair use. This MCP server is not affiliated "
    "with Apple Inc. and does not claim ownership of Apple's content."
)

ATTRIBUTION_CLOSING = (
    "For the most up-to-date and official information, please refer to "
    "Apple's official documentation."
)

ATTRIBUTION_TAIL = f"{ATTRIBUTION_DISCLAIMER}\n\n{ATTRIBUTION_CLOSING}"

HIGH_QUALITY_NOTICE = (
    "This content was successfully extracted from Apple's official documentation."
)
FALLBACK_NOTICE = (
    "⚠️ This content uses fallback information. For the most accurate and "
    "complete information, please visit the official Apple documentation."
)
MODERATE_QUALITY_NOTICE = (
    "This content was extracted with moderate confidence. Please verify "
    "important details with the official Apple documentation."
)


def quality_notice_for(
    quality_score: Optional[float], extraction_method: Optional[str] = None
) -> str:
    """Picks the quality notice printed above the disclaimer."""
    if quality_score is not None and quality_score >= 0.8:
        return HIGH_QUALITY_NOTICE
    if extraction_method == "fallback":
        return FALLBACK_NOTICE
    return MODERATE_QUALITY_NOTICE


def render_attribution(url: Optional[str] = None, quality_notice: Optional[str] = None) -> str:
    """
    Builds the attribution block appended to a document body.

    Args:
        url (Optional[str]): The page the content was sourced from.
        quality_notice (Optional[str]): A sentence describing extraction quality.

    Returns:
        str: The block, starting with a blank line and a horizontal rule.
    """
    source_line = "This content is sourced from Apple's Human Interface Guidelines"
    source_line = f"{source_line}: {url}" if url else f"{source_line}."

    lines = ["", "---", "", ATTRIBUTION_HEADING, "", source_line, ""]
    if quality_notice:
        lines.extend([quality_notice, ""])
    lines.extend([ATTRIBUTION_DISCLAIMER, "", ATTRIBUTION_CLOSING, ""])
    return "\n".join(lines)


def has_attribution(body: str) -> bool:
    """True when the body ends with the fixed attribution notice."""
    stripped = body.rstrip()
    return ATTRIBUTION_HEADING in stripped and stripped.endswith(ATTRIBUTION_TAIL)


def strip_attribution(body: str) -> str:
    """Returns the body with its attribution footer removed."""
    if not has_attribution(body):
        return body
    head = body[: body.rfind(ATTRIBUTION_HEADING)].rstrip()
    # The heading is preceded by a horizontal rule.
    if head.endswith("---"):
        head = head[:-3].rstrip()
    return head

"""
Front-matter codec for HIG documents.

A document file starts with a ``---`` fenced YAML block of metadata followed
by the markdown body. This module splits and parses that block with PyYAML
and renders documents back into the same layout.
"""

import json
import math
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import yaml

from .data_models import FRONT_MATTER_KEYS, Document

logger = logging.getLogger(__name__)

FENCE = "---"


class FrontMatterError(ValueError):
    """Raised when a document's front-matter block is missing or unreadable."""


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """
    Splits a document into its parsed front matter and its body.

    Args:
        text (str): The full document text.

    Returns:
        Tuple[Dict[str, Any], str]: The metadata mapping and the body, which
            is everything after the closing fence, kept verbatim.

    Raises:
        FrontMatterError: If the fences are missing or the block is not a
            YAML mapping.
    """
    text = text.lstrip("﻿").replace("\r\n", "\n")
    lines = text.split("\n")
    if not lines or lines[0].rstrip() != FENCE:
        raise FrontMatterError("Document does not start with a front-matter fence.")

    try:
        end = next(i for i in range(1, len(lines)) if lines[i].rstrip() == FENCE)
    except StopIteration:
        raise FrontMatterError("Front-matter block is not closed.") from None

    block = "\n".join(lines[1:end])
    try:
        metadata = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Front matter is not valid YAML: {e}") from e

    if metadata is None:
        raise FrontMatterError("Front-matter block is empty.")
    if not isinstance(metadata, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(metadata).__name__}."
        )

    body = "\n".join(lines[end + 1 :])
    return metadata, body


def parse_document(text: str, default_id: Optional[str] = None) -> Document:
    """
    Parses the text of a document file into a Document.

    Args:
        text (str): The full document text.
        default_id (Optional[str]): Id to use when the front matter has none,
            usually the file name without its extension.

    Raises:
        FrontMatterError: If the front matter cannot be split or parsed.
        pydantic.ValidationError: If the metadata is missing fields or ill-typed.
    """
    metadata, body = split_front_matter(text)
    if default_id and not metadata.get("id"):
        metadata["id"] = default_id
    return Document.from_front_matter(metadata, body)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _format_float(value: float, fixed: bool = True) -> str:
    """
    Three decimals when that loses nothing, otherwise the shortest repr.

    PyYAML only reads ``1.0e-05`` as a float when the mantissa has a dot.
    """
    if math.isnan(value):
        return ".nan"
    if math.isinf(value):
        return ".inf" if value > 0 else "-.inf"
    if fixed and round(value, 3) == value:
        return f"{value:.3f}"
    text = repr(value)
    if "e" in text and "." not in text:
        mantissa, exponent = text.split("e")
        text = f"{mantissa}.0e{exponent}"
    return text


def _format_scalar(value: Any, fixed_floats: bool = True) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value, fixed=fixed_floats)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, str):
        # Plain scalars only when YAML reads them back as the same string.
        try:
            if value == value.strip() and yaml.safe_load(value) == value:
                return value
        except yaml.YAMLError:
            pass
        return json.dumps(value, ensure_ascii=False)
    return json.dumps(value, ensure_ascii=False)


def render_front_matter(document: Document) -> str:
    """Renders the fenced front-matter block, ending with a newline."""
    lines = [FENCE]
    for key, value in document.to_front_matter().items():
        if value is None:
            continue
        if key == "title":
            lines.append(f"{key}: {json.dumps(value, ensure_ascii=False)}")
        elif key == "keywords":
            lines.append(f"{key}: {json.dumps(list(value), ensure_ascii=False)}")
        elif isinstance(value, (dict, list)):
            dumped = yaml.safe_dump(
                {key: value},
                default_flow_style=None,
                sort_keys=False,
                allow_unicode=True,
                width=float("inf"),
            )
            lines.append(dumped.rstrip("\n"))
        else:
            # Unknown keys pass through unchanged.
            lines.append(f"{key}: {_format_scalar(value, fixed_floats=key in FRONT_MATTER_KEYS)}")
    lines.append(FENCE)
    return "\n".join(lines) + "\n"


def render_document(document: Document) -> str:
    """Renders a Document back into the text of a document file."""
    return render_front_matter(document) + document.body

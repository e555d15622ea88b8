"""
Core data models for the higcorpus toolkit.

This module defines the two data structures that move through the toolkit:
the raw packet a source hands over before parsing, and the validated
HIG document with its front-matter metadata.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import re
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .attribution import strip_attribution


@dataclass
class RawDocument:
    """
    A standard data packet produced by a source.

    Attributes:
        content (str): The full text of the document file, front matter included.
        metadata (Dict[str, Any]): Information about where the text came from.
            Examples include the source path or URL, an S3 ETag, or the
            ``default_id`` to use when the front matter carries no id.
    """

    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


# Serialization order of the front-matter keys.
FRONT_MATTER_KEYS = [
    "title",
    "platform",
    "category",
    "url",
    "id",
    "lastUpdated",
    "extractionMethod",
    "qualityScore",
    "confidence",
    "contentLength",
    "hasCodeExamples",
    "hasImages",
    "keywords",
]

# ids and platforms become path segments and object keys.
SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def is_safe_segment(value: str) -> bool:
    """True when value can be used as a single path segment."""
    return bool(SLUG_PATTERN.match(value)) and ".." not in value


class Document(BaseModel):
    """A single HIG page: front-matter metadata plus its markdown body."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    platform: str = Field(min_length=1)
    category: str = Field(min_length=1)
    url: str = Field(min_length=1)
    last_updated: datetime = Field(
        validation_alias=AliasChoices("lastUpdated", "last_updated"),
        serialization_alias="lastUpdated",
    )
    extraction_method: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("extractionMethod", "extraction_method"),
        serialization_alias="extractionMethod",
    )
    quality_score: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        strict=True,
        validation_alias=AliasChoices("qualityScore", "quality_score"),
        serialization_alias="qualityScore",
    )
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0, strict=True)
    content_length: Optional[int] = Field(
        default=None,
        ge=0,
        strict=True,
        validation_alias=AliasChoices("contentLength", "content_length"),
        serialization_alias="contentLength",
    )
    has_code_examples: bool = Field(
        default=False,
        strict=True,
        validation_alias=AliasChoices("hasCodeExamples", "has_code_examples"),
        serialization_alias="hasCodeExamples",
    )
    has_images: bool = Field(
        default=False,
        strict=True,
        validation_alias=AliasChoices("hasImages", "has_images"),
        serialization_alias="hasImages",
    )
    keywords: List[str] = Field(default_factory=list)
    body: str = ""

    @field_validator("id", "title", "platform", "category", "url")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("id", "platform")
    @classmethod
    def _check_slug(cls, value: str) -> str:
        value = value.strip()
        if not is_safe_segment(value):
            raise ValueError(
                "must contain only letters, digits, '.', '_' and '-', start with a "
                "letter or digit, and not contain '..'"
            )
        return value

    @field_validator("last_updated")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # YAML timestamps without an offset are UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_front_matter(cls, metadata: Dict[str, Any], body: str) -> "Document":
        """
        Builds a Document from a parsed front-matter mapping and its body.

        Raises:
            pydantic.ValidationError: If a field is missing or ill-typed.
        """
        return cls.model_validate({**metadata, "body": body})

    def to_front_matter(self) -> Dict[str, Any]:
        """Returns the metadata keyed by front-matter names, in file order."""
        dumped = self.model_dump(by_alias=True, exclude={"body"})
        ordered = {key: dumped.pop(key) for key in FRONT_MATTER_KEYS if key in dumped}
        ordered.update(dumped)
        return ordered

    @property
    def content(self) -> str:
        """The markdown body without the attribution footer."""
        return strip_attribution(self.body)

    @property
    def is_fallback(self) -> bool:
        return self.extraction_method == "fallback"

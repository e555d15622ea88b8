"""
In-memory corpus store.

The store maps document ids to Documents and groups them by platform and
category. Documents are write-once: adding a second document with an
existing id is an error.
"""

import logging
import re
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional

from pydantic import BaseModel, Field

from ..utils.attribution import render_attribution
from ..utils.data_models import Document
from ..utils.frontmatter import parse_document

logger = logging.getLogger(__name__)

RESOURCE_URI = re.compile(r"^hig://([^/]+)(?:/(.+))?$")

PLATFORM_NAMES = {
    "ios": "iOS",
    "macos": "macOS",
    "watchos": "watchOS",
    "tvos": "tvOS",
    "visionos": "visionOS",
    "universal": "Universal",
}


class DuplicateDocumentError(ValueError):
    """Raised when a document id is already present in the store."""


class DocumentNotFoundError(KeyError):
    """Raised when a document id is not present in the store."""


class CorpusStatistics(BaseModel):
    """Summary of a corpus, as written to ``generation-info.json``."""

    last_updated: Optional[datetime] = Field(default=None, serialization_alias="lastUpdated")
    total_sections: int = Field(default=0, serialization_alias="totalSections")
    sections_by_platform: Dict[str, int] = Field(
        default_factory=dict, serialization_alias="sectionsByPlatform"
    )
    sections_by_category: Dict[str, int] = Field(
        default_factory=dict, serialization_alias="sectionsByCategory"
    )
    total_size: int = Field(default=0, serialization_alias="totalSize")
    average_quality: Optional[float] = Field(default=None, serialization_alias="averageQuality")
    average_confidence: Optional[float] = Field(
        default=None, serialization_alias="averageConfidence"
    )
    fallback_usage: int = Field(default=0, serialization_alias="fallbackUsage")


class ResourceInfo(BaseModel):
    """A ``hig://`` page that render_resource can produce."""

    uri: str
    name: str
    description: str
    mime_type: str = Field(default="text/markdown", serialization_alias="mimeType")


def format_category_name(category: str) -> str:
    """'selection-and-input' -> 'Selection and Input'."""
    words = category.split("-")
    return " ".join(
        word if i and word in ("and", "of") else word.capitalize()
        for i, word in enumerate(words)
    )


def format_platform_name(platform: str) -> str:
    return PLATFORM_NAMES.get(platform.lower(), platform)


class CorpusStore:
    """Read-only collection of Documents keyed by id."""

    def __init__(self):
        self._documents: Dict[str, Document] = {}

    @classmethod
    def from_documents(cls, documents: Iterable[Document]) -> "CorpusStore":
        store = cls()
        for document in documents:
            store.add(document)
        return store

    @classmethod
    def load_directory(cls, path: str, glob_pattern: str = "**/*.md") -> "CorpusStore":
        """
        Loads every document file under a directory.

        Raises:
            FileNotFoundError: If the directory does not exist.
            FrontMatterError, pydantic.ValidationError: If a file cannot be parsed.
            DuplicateDocumentError: If two files share an id.
        """
        root = Path(path)
        if not root.is_dir():
            raise FileNotFoundError(f"Corpus directory '{root}' does not exist.")

        store = cls()
        for file_path in sorted(root.glob(glob_pattern)):
            if not file_path.is_file():
                continue
            text = file_path.read_text(encoding="utf-8")
            store.add(parse_document(text, default_id=file_path.stem))
        logger.info(f"Loaded {len(store)} documents from '{root}'.")
        return store

    def add(self, document: Document):
        if document.id in self._documents:
            raise DuplicateDocumentError(f"Document '{document.id}' already exists.")
        self._documents[document.id] = document

    def get(self, document_id: str) -> Optional[Document]:
        return self._documents.get(document_id)

    def __getitem__(self, document_id: str) -> Document:
        try:
            return self._documents[document_id]
        except KeyError:
            raise DocumentNotFoundError(document_id) from None

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._documents

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def ids(self) -> List[str]:
        return list(self._documents)

    def by_platform(self, platform: str) -> List[Document]:
        platform = platform.lower()
        return [doc for doc in self if doc.platform.lower() == platform]

    def by_category(self, category: str, platform: Optional[str] = None) -> List[Document]:
        category = category.lower()
        documents = self.by_platform(platform) if platform else list(self)
        return [doc for doc in documents if doc.category.lower() == category]

    def platforms(self) -> List[str]:
        return sorted({doc.platform.lower() for doc in self})

    def categories(self) -> List[str]:
        return sorted({doc.category.lower() for doc in self})

    def statistics(self) -> CorpusStatistics:
        """Counts and averages over the whole corpus."""
        documents = list(self)
        if not documents:
            return CorpusStatistics()

        scores = [doc.quality_score for doc in documents if doc.quality_score is not None]
        confidences = [doc.confidence for doc in documents if doc.confidence is not None]
        return CorpusStatistics(
            last_updated=max(doc.last_updated for doc in documents),
            total_sections=len(documents),
            sections_by_platform=dict(Counter(doc.platform.lower() for doc in documents)),
            sections_by_category=dict(Counter(doc.category.lower() for doc in documents)),
            total_size=sum(len(doc.body.encode("utf-8")) for doc in documents),
            average_quality=round(sum(scores) / len(scores), 3) if scores else None,
            average_confidence=(
                round(sum(confidences) / len(confidences), 3) if confidences else None
            ),
            fallback_usage=sum(1 for doc in documents if doc.is_fallback),
        )

    def list_resources(self) -> List[ResourceInfo]:
        """
        Lists every platform and platform/category page that has documents.

        Known platforms come first in their usual order, other platforms
        follow alphabetically, and the universal page comes last.
        """
        present = self.platforms()
        ordered = [p for p in PLATFORM_NAMES if p in present and p != "universal"]
        ordered += [p for p in present if p not in PLATFORM_NAMES]

        resources = []
        for platform in ordered:
            platform_name = format_platform_name(platform)
            resources.append(
                ResourceInfo(
                    uri=f"hig://{platform}",
                    name=f"{platform_name} Human Interface Guidelines",
                    description=f"Complete design guidelines for {platform_name} development",
                )
            )
            categories = sorted({doc.category.lower() for doc in self.by_platform(platform)})
            for category in categories:
                category_name = format_category_name(category)
                resources.append(
                    ResourceInfo(
                        uri=f"hig://{platform}/{category}",
                        name=f"{platform_name} {category_name}",
                        description=f"{platform_name} guidelines for {category_name.lower()}",
                    )
                )

        if "universal" in present:
            resources.append(
                ResourceInfo(
                    uri="hig://universal",
                    name="Universal Design Guidelines",
                    description="Cross-platform design principles",
                )
            )
        return resources

    def render_resource(self, uri: str) -> Optional[str]:
        """
        Renders a platform or category page for a ``hig://`` URI.

        ``hig://<platform>`` collects every document of a platform and
        ``hig://<platform>/<category>`` narrows it to one category. Returns
        None when the URI is malformed or matches no document.
        """
        match = RESOURCE_URI.match(uri.strip())
        if not match:
            return None

        platform, category = match.group(1).lower(), match.group(2)
        platform_name = format_platform_name(platform)
        if category:
            documents = self.by_category(category, platform)
            category_name = format_category_name(category.lower())
            title = f"{platform_name} {category_name}"
            intro = f"Guidelines for {category_name.lower()} in {platform_name} applications."
        else:
            documents = self.by_platform(platform)
            title = f"{platform_name} Human Interface Guidelines"
            intro = f"This document contains the complete design guidelines for {platform_name} development."

        if not documents:
            logger.debug(f"No documents found for resource '{uri}'.")
            return None

        parts = [f"# {title}\n\n{intro}\n", render_attribution().lstrip("\n"), ""]
        for document in documents:
            parts.append(f"## {document.title}\n\n**URL:** {document.url}\n\n{document.content}\n\n---\n")
        return "\n".join(parts)

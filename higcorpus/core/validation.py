"""
Content-integrity validation for a HIG corpus.

Errors mark documents that break the corpus format: duplicate ids,
ill-typed front matter, a missing attribution notice. Warnings flag
documents that are well formed but fall under the quality thresholds of
the extraction process.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..utils.attribution import has_attribution
from ..utils.data_models import Document
from ..utils.frontmatter import FrontMatterError

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"

DEFAULT_PLATFORMS = ["universal", "ios", "macos", "watchos", "tvos", "visionos"]
DEFAULT_CATEGORIES = [
    "foundations",
    "layout",
    "navigation",
    "presentation",
    "selection-and-input",
    "status",
    "system-capabilities",
    "visual-design",
    "icons-and-images",
    "color-and-materials",
    "typography",
    "motion",
    "technologies",
]


class ValidationIssue(BaseModel):
    """One failed check on one document."""

    check: str
    severity: str
    message: str
    document_id: Optional[str] = None
    source: Optional[str] = None

    def describe(self) -> str:
        where = self.document_id or self.source or "<unknown>"
        return f"[{self.severity}] {where}: {self.check}: {self.message}"


class ValidationReport(BaseModel):
    """All issues found in one validation run."""

    documents_checked: int = 0
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def invalid_document_ids(self) -> set:
        return {issue.document_id for issue in self.errors if issue.document_id}

    def summary(self) -> str:
        status = "passed" if self.is_valid else "failed"
        return (
            f"Validation {status}: {self.documents_checked} documents checked, "
            f"{len(self.errors)} errors, {len(self.warnings)} warnings."
        )


class ValidationThresholds(BaseModel):
    min_quality_score: float = Field(default=0.5, ge=0.0, le=1.0)
    min_confidence: float = Field(default=0.4, ge=0.0, le=1.0)
    min_content_length: int = Field(default=200, ge=0)
    known_platforms: List[str] = Field(default_factory=lambda: list(DEFAULT_PLATFORMS))
    known_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))


def parse_failure_issues(
    source: Optional[str], error: Union[FrontMatterError, ValidationError]
) -> List[ValidationIssue]:
    """Turns a parse error into error issues, one per failing field."""
    if not isinstance(error, ValidationError):
        return [ValidationIssue(check="front_matter", severity=ERROR, message=str(error), source=source)]

    issues = []
    for detail in error.errors():
        field_name = ".".join(str(part) for part in detail["loc"]) or "front_matter"
        issues.append(
            ValidationIssue(
                check="field_type",
                severity=ERROR,
                message=f"{field_name}: {detail['msg']}",
                source=source,
            )
        )
    return issues


class CorpusValidator:
    """
    Runs the integrity checks over documents and collects a report.

    Parse failures happen before a Document exists. Callers report them
    through record_parse_failure and they land in the next validate() report.
    """

    def __init__(self, thresholds: Optional[ValidationThresholds] = None):
        self.thresholds = thresholds or ValidationThresholds()
        self._pending: List[ValidationIssue] = []
        self._failed_parses = 0

    def record_parse_failure(
        self, source: str, error: Union[FrontMatterError, ValidationError]
    ) -> List[ValidationIssue]:
        """Records a document that could not be parsed."""
        issues = parse_failure_issues(source, error)
        self.record_issues(issues)
        return issues

    def record_issues(self, issues: List[ValidationIssue]):
        """Records the issues of one unparseable document."""
        self._pending.extend(issues)
        self._failed_parses += 1

    def check_document(self, document: Document, source: Optional[str] = None) -> List[ValidationIssue]:
        """Checks that need only the document itself."""
        issues: List[ValidationIssue] = []

        def add(check: str, severity: str, message: str):
            issues.append(
                ValidationIssue(
                    check=check,
                    severity=severity,
                    message=message,
                    document_id=document.id,
                    source=source,
                )
            )

        if not has_attribution(document.body):
            add("attribution", ERROR, "Body does not end with the attribution notice.")

        if document.last_updated > datetime.now(timezone.utc):
            add("timestamp", WARNING, f"lastUpdated {document.last_updated.isoformat()} is in the future.")

        if not document.url.startswith(("http://", "https://")):
            add("url", WARNING, f"URL '{document.url}' is not an http(s) address.")

        thresholds = self.thresholds
        if document.platform.lower() not in thresholds.known_platforms:
            add("platform", WARNING, f"Unknown platform '{document.platform}'.")
        if document.category.lower() not in thresholds.known_categories:
            add("category", WARNING, f"Unknown category '{document.category}'.")

        if document.quality_score is not None and document.quality_score < thresholds.min_quality_score:
            add(
                "quality",
                WARNING,
                f"Quality score {document.quality_score:.3f} is below {thresholds.min_quality_score}.",
            )
        if document.confidence is not None and document.confidence < thresholds.min_confidence:
            add(
                "confidence",
                WARNING,
                f"Confidence {document.confidence:.3f} is below {thresholds.min_confidence}.",
            )
        if document.content_length is not None and document.content_length < thresholds.min_content_length:
            add(
                "content_length",
                WARNING,
                f"Content length {document.content_length} is below {thresholds.min_content_length}.",
            )
        if document.is_fallback:
            add("fallback", WARNING, "Content was produced by the fallback extractor.")

        lowered = [keyword.lower() for keyword in document.keywords]
        if len(set(lowered)) != len(lowered):
            add("keywords", WARNING, "Keyword list contains duplicates.")

        return issues

    def validate(
        self, documents: Iterable[Document], sources: Optional[List[Optional[str]]] = None
    ) -> ValidationReport:
        """
        Validates a whole corpus.

        Args:
            documents (Iterable[Document]): The parsed documents.
            sources (Optional[List[Optional[str]]]): Where each document came
                from, aligned with documents. Used to name every copy of a
                duplicate id.

        Returns:
            ValidationReport: Issues from every check, including parse
                failures recorded since the last run.
        """
        documents = list(documents)
        sources = list(sources or [])
        sources += [None] * (len(documents) - len(sources))
        report = ValidationReport(
            documents_checked=len(documents) + self._failed_parses,
            issues=list(self._pending),
        )
        self._pending = []
        self._failed_parses = 0

        seen: Dict[str, List[Optional[str]]] = defaultdict(list)
        for document, source in zip(documents, sources):
            seen[document.id].append(source)
            report.issues.extend(self.check_document(document, source))

        for document_id, origins in seen.items():
            if len(origins) > 1:
                names = ", ".join(origin or "<unknown>" for origin in origins)
                report.issues.append(
                    ValidationIssue(
                        check="unique_id",
                        severity=ERROR,
                        message=f"Id appears {len(origins)} times ({names}).",
                        document_id=document_id,
                    )
                )

        logger.info(report.summary())
        for issue in report.errors:
            logger.warning(issue.describe())
        return report

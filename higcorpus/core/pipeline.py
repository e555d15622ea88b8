"""
Core pipeline orchestration module.

This module defines `run_pipeline`, which reads a YAML configuration, builds
the configured source, sink and state backend, and moves a corpus through
load -> parse -> validate -> write.
"""

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
import os
from typing import List, Optional

from pydantic import ValidationError

from ..utils.config import load_config
from .factory import build_component, SOURCE_REGISTRY, SINK_REGISTRY, STATE_REGISTRY
from .validation import (
    CorpusValidator,
    ValidationIssue,
    ValidationReport,
    ValidationThresholds,
    parse_failure_issues,
)
from ..utils.data_models import Document, RawDocument
from ..utils.frontmatter import FrontMatterError, parse_document
from ..utils.state_manager import StateManager

logger = logging.getLogger(__name__)


@dataclass
class ParseOutcome:
    """The result of parsing one RawDocument: a document or its issues."""

    document: Optional[Document] = None
    issues: List[ValidationIssue] = field(default_factory=list)


@dataclass
class PipelineResult:
    loaded: int = 0
    parsed: int = 0
    written: int = 0
    aborted: bool = False
    report: Optional[ValidationReport] = None


def parse_raw_document(raw: RawDocument) -> ParseOutcome:
    """Parses a single raw document, capturing failures as issues."""
    source = raw.metadata.get("source")
    try:
        document = parse_document(raw.content, default_id=raw.metadata.get("default_id"))
        return ParseOutcome(document=document)
    except (FrontMatterError, ValidationError) as e:
        logger.debug(f"Could not parse '{source}': {e}")
        return ParseOutcome(issues=parse_failure_issues(source, e))


def build_thresholds(validation_config: Optional[dict]) -> ValidationThresholds:
    settings = {
        key: value
        for key, value in (validation_config or {}).items()
        if key in ValidationThresholds.model_fields and value is not None
    }
    return ValidationThresholds(**settings)


def _build_state_manager(config: dict) -> StateManager:
    state_config = config.get("state") or {"type": "json", "config": {}}
    backend = build_component(state_config, STATE_REGISTRY)
    return StateManager(backend=backend)


def _build_components(config: dict, state_manager: StateManager) -> tuple:
    """Builds the source and sink based on the configuration."""
    logger.info("Building pipeline components...")
    try:
        source_config = dict(config["source"])
        source_config["config"] = {**(source_config.get("config") or {}), "state_manager": state_manager}
        source = build_component(source_config, SOURCE_REGISTRY)
        sink = build_component(config["sink"], SINK_REGISTRY)
        logger.info("All components built successfully.")
        return source, sink
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Error building components: {e}", exc_info=True)
        raise


def _parse_documents(raw_documents: List[RawDocument]) -> List[ParseOutcome]:
    max_workers = min(4, os.cpu_count() or 1)
    logger.info(f"Parsing {len(raw_documents)} documents with {max_workers} workers.")
    with ProcessPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(parse_raw_document, raw_documents))


def _process_documents(source, sink, state_manager, config) -> PipelineResult:
    """Loads, parses, validates and sinks the documents."""
    result = PipelineResult()

    logger.info(f"Loading documents from source: {source.__class__.__name__}")
    raw_documents = source.load_data()
    result.loaded = len(raw_documents)
    if not raw_documents:
        logger.info("No new or modified documents to process. Pipeline finished.")
        return result

    validation_config = config.get("validation") or {}
    validator = CorpusValidator(build_thresholds(validation_config))

    parsed = []
    for raw, outcome in zip(raw_documents, _parse_documents(raw_documents)):
        if outcome.document is None:
            validator.record_issues(outcome.issues)
        else:
            parsed.append((raw, outcome.document))
    result.parsed = len(parsed)

    report = validator.validate(
        [document for _, document in parsed],
        sources=[raw.metadata.get("source") for raw, _ in parsed],
    )
    result.report = report

    if not report.is_valid and validation_config.get("fail_on_error", True):
        logger.error(f"Corpus failed validation with {len(report.errors)} errors. Nothing was written.")
        result.aborted = True
        return result

    invalid_ids = report.invalid_document_ids()
    accepted = [(raw, document) for raw, document in parsed if document.id not in invalid_ids]
    if invalid_ids:
        logger.warning(f"Skipping {len(parsed) - len(accepted)} documents that failed validation.")

    if not accepted:
        logger.info("No valid documents to write.")
        return result

    logger.info(f"Writing documents to: {sink.__class__.__name__}")
    sink.sink([document for _, document in accepted])
    result.written = len(accepted)

    logger.info("Updating state for processed documents...")
    source.update_state([raw for raw, _ in accepted])
    state_manager.update_run_timestamp()
    state_manager.save()
    return result


def run_pipeline(config_path: str) -> PipelineResult:
    """
    Runs the corpus pipeline described by a configuration file.

    Raises:
        FileNotFoundError, FileExistsError, ValueError, KeyError,
            ConnectionError: If a component cannot be built or fails while
            running. FileExistsError means the sink refused to write a
            second copy of an existing id.
    """
    logger.info(f"higcorpus pipeline starting with config: {config_path}")

    try:
        config = load_config(config_path)
        state_manager = _build_state_manager(config)
        source, sink = _build_components(config, state_manager)
        result = _process_documents(source, sink, state_manager, config)
    except (FileNotFoundError, FileExistsError, ValueError, KeyError, ConnectionError) as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        raise

    if result.aborted:
        logger.warning("higcorpus pipeline stopped after validation.")
    else:
        logger.info(f"higcorpus pipeline completed: {result.written} of {result.loaded} documents written.")
    return result

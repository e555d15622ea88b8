"""
Document sink components for higcorpus.

A sink writes validated documents to their destination: a corpus
directory laid out by platform, a single transport-unit file, or an S3
bucket.
"""

from abc import ABC, abstractmethod
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import boto3
from botocore.exceptions import NoCredentialsError, ClientError

from ..core.store import CorpusStore
from ..utils.bundle import join_bundle
from ..utils.data_models import Document, is_safe_segment
from ..utils.frontmatter import parse_document, render_document
from ..utils.state_manager import hash_text

logger = logging.getLogger(__name__)


class BaseSink(ABC):
    """Abstract base class for all document sinks."""

    @abstractmethod
    def sink(self, documents: List[Document]):
        """
        Writes the given documents to the destination.

        Args:
            documents (List[Document]): Validated documents.
        """
        pass

    @abstractmethod
    def test_connection(self):
        """
        Checks that the destination is writable.

        Raises:
            Exception: If the destination cannot be accessed.
        """
        pass


class MarkdownDirectorySink(BaseSink):
    """
    Writes one markdown file per document under
    ``<path>/platforms/<platform>/<id>.md``.

    Documents are write-once: an id already present anywhere under
    ``platforms/`` is only ever rewritten in place, and a file that holds a
    different document id is never replaced. A
    ``metadata/generation-info.json`` summary of the whole directory is
    refreshed after every write.
    """

    def __init__(self, path: str, write_metadata: bool = True):
        self.path = Path(path)
        self.write_metadata = write_metadata
        logger.debug(f"Initialized MarkdownDirectorySink with path='{self.path}'")

    def document_path(self, document: Document) -> Path:
        """
        Raises:
            ValueError: If the id or platform would leave the sink directory.
        """
        platform = document.platform.lower()
        for segment in (platform, document.id):
            if not is_safe_segment(segment):
                raise ValueError(f"'{segment}' cannot be used as a path segment.")
        target = self.path / "platforms" / platform / f"{document.id}.md"
        if not target.resolve().is_relative_to(self.path.resolve()):
            raise ValueError(f"'{target}' is outside the sink directory '{self.path}'.")
        return target

    def _read_id(self, file_path: Path) -> Optional[str]:
        try:
            return parse_document(file_path.read_text(encoding="utf-8"), default_id=file_path.stem).id
        except (OSError, ValueError):
            return None

    def _index_existing(self) -> Dict[str, Path]:
        """Maps the id of every document already written to its file."""
        index = {}
        for file_path in sorted((self.path / "platforms").glob("**/*.md")):
            document_id = self._read_id(file_path) or file_path.stem
            index.setdefault(document_id, file_path)
        return index

    def _check_existing(self, target: Path, document: Document, text: str, index: Dict[str, Path]) -> bool:
        """Returns True when the target must be (re)written."""
        existing_path = index.get(document.id)
        if existing_path is not None and existing_path != target:
            raise FileExistsError(
                f"Document '{document.id}' already exists at '{existing_path}', "
                f"refusing to write a second copy to '{target}'."
            )
        if not target.exists():
            return True
        existing = target.read_text(encoding="utf-8")
        if hash_text(existing) == hash_text(text):
            logger.debug(f"'{target}' is unchanged. Skipping.")
            return False
        existing_id = self._read_id(target)
        if existing_id != document.id:
            raise FileExistsError(
                f"'{target}' holds document '{existing_id}', refusing to replace it with '{document.id}'."
            )
        return True

    def sink(self, documents: List[Document]):
        if not documents:
            logger.warning("No documents provided to sink. Aborting.")
            return

        logger.info(f"Writing {len(documents)} documents to '{self.path}'")
        index = self._index_existing()
        written = 0
        for document in documents:
            target = self.document_path(document)
            text = render_document(document)
            if not self._check_existing(target, document, text, index):
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
            index[document.id] = target
            written += 1
        logger.info(f"Wrote {written} documents ({len(documents) - written} unchanged).")

        if self.write_metadata:
            self._write_generation_info()

    def _collect_corpus(self) -> CorpusStore:
        store = CorpusStore()
        for file_path in sorted((self.path / "platforms").glob("**/*.md")):
            try:
                store.add(parse_document(file_path.read_text(encoding="utf-8"), default_id=file_path.stem))
            except ValueError as e:
                logger.warning(f"Leaving '{file_path}' out of the corpus summary: {e}")
        return store

    def _write_generation_info(self):
        statistics = self._collect_corpus().statistics()
        metadata_dir = self.path / "metadata"
        metadata_dir.mkdir(parents=True, exist_ok=True)
        info_path = metadata_dir / "generation-info.json"
        info_path.write_text(
            json.dumps(statistics.model_dump(mode="json", by_alias=True), indent=2),
            encoding="utf-8",
        )
        logger.info(f"Corpus summary written to '{info_path}'.")

    def test_connection(self):
        logger.info(f"Testing connection for MarkdownDirectorySink at path: {self.path}")
        if self.path.exists() and not self.path.is_dir():
            raise NotADirectoryError(f"Sink path '{self.path}' is not a directory.")
        self.path.mkdir(parents=True, exist_ok=True)
        logger.info("Connection to MarkdownDirectorySink successful.")


class BundleSink(BaseSink):
    """Writes all documents into a single transport-unit file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def sink(self, documents: List[Document]):
        if not documents:
            logger.warning("No documents provided to sink. Aborting.")
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            join_bundle(render_document(document) for document in documents),
            encoding="utf-8",
        )
        logger.info(f"Wrote transport unit with {len(documents)} documents to '{self.path}'.")

    def test_connection(self):
        logger.info(f"Testing connection for BundleSink at path: {self.path}")
        if self.path.is_dir():
            raise IsADirectoryError(f"Bundle path '{self.path}' is a directory.")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Connection to BundleSink successful.")


class S3Sink(BaseSink):
    """Uploads each document to ``<prefix><platform>/<id>.md`` in a bucket."""

    def __init__(self, bucket: str, prefix: str = ""):
        self.bucket_name = bucket
        self.prefix = prefix
        self.s3_client = boto3.client("s3")

    def object_key(self, document: Document) -> str:
        platform = document.platform.lower()
        for segment in (platform, document.id):
            if not is_safe_segment(segment):
                raise ValueError(f"'{segment}' cannot be used in an object key.")
        return f"{self.prefix}{platform}/{document.id}.md"

    def sink(self, documents: List[Document]):
        if not documents:
            logger.warning("No documents provided to sink. Aborting.")
            return

        logger.info(f"Uploading {len(documents)} documents to S3 bucket '{self.bucket_name}'")
        for document in documents:
            key = self.object_key(document)
            try:
                self.s3_client.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=render_document(document).encode("utf-8"),
                    ContentType="text/markdown; charset=utf-8",
                )
            except ClientError as e:
                logger.error(f"Error uploading {key}: {e}", exc_info=True)
                raise ConnectionError(f"Could not upload '{key}' to S3: {e}") from e
        logger.info("Finished uploading documents to S3.")

    def test_connection(self):
        logger.info(f"Testing connection to S3 bucket: {self.bucket_name}")
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.info("Connection to S3 bucket successful.")
        except NoCredentialsError as e:
            raise ConnectionError("AWS credentials not found.") from e
        except ClientError as e:
            raise ConnectionError(f"Failed to connect to S3 bucket: {self.bucket_name}") from e

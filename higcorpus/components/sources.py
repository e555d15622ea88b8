"""
Document source components for higcorpus.

A source fetches the raw text of HIG documents from somewhere (a local
directory, a transport-unit file, a URL, an S3 bucket) and hands it over as
RawDocument packets. Parsing and validation happen later in the pipeline.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path, PurePosixPath
import logging
from typing import List, Optional

import boto3
from botocore.exceptions import NoCredentialsError, ClientError
import requests

from ..utils.bundle import split_bundle
from ..utils.data_models import RawDocument
from ..utils.state_manager import StateManager

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".bundle"


class BaseSource(ABC):
    """Abstract base class for all document sources."""

    @abstractmethod
    def load_data(self) -> List[RawDocument]:
        """
        Loads document texts from the configured source.
        """
        pass

    @abstractmethod
    def update_state(self, processed_docs: List[RawDocument]):
        """
        Records the given documents as loaded, for incremental runs.
        """
        pass

    @abstractmethod
    def test_connection(self):
        """
        Checks that the source is reachable.

        Raises:
            Exception: If the source cannot be accessed.
        """
        pass


class LocalFileSource(BaseSource):
    """
    Loads document files from a local directory.

    With a state manager, only files that are new or changed since the
    last recorded run are returned.
    """

    def __init__(
        self,
        path: str,
        glob_pattern: str = "**/*.md",
        state_manager: Optional[StateManager] = None,
    ):
        self.path = Path(path)
        self.glob_pattern = glob_pattern
        self.state_manager = state_manager
        logger.debug(
            f"Initialized LocalFileSource with path='{self.path}' and glob='{self.glob_pattern}'"
        )

    def load_data(self) -> List[RawDocument]:
        logger.info(f"Scanning for documents in '{self.path}' with pattern '{self.glob_pattern}'.")
        if not self.path.is_dir():
            logger.error(f"Source path '{self.path}' is not a valid directory.")
            return []

        all_files = sorted(str(f) for f in self.path.glob(self.glob_pattern) if f.is_file())
        if self.state_manager:
            candidates = [f for f in all_files if self.state_manager.has_changed(f)]
        else:
            candidates = all_files

        if not candidates:
            logger.info("No new or changed documents detected.")
            return []

        logger.info(f"Found {len(candidates)} new or changed documents.")

        loaded_data = []
        for file_path in candidates:
            try:
                content = Path(file_path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error reading file '{file_path}': {e}", exc_info=True)
                continue
            if not content.strip():
                logger.warning(f"File '{file_path}' is empty. Skipping.")
                continue
            loaded_data.append(
                RawDocument(
                    content=content,
                    metadata={"source": file_path, "default_id": Path(file_path).stem},
                )
            )
        return loaded_data

    def update_state(self, processed_docs: List[RawDocument]):
        if not self.state_manager:
            return
        for doc in processed_docs:
            source_identifier = doc.metadata.get("source")
            if source_identifier:
                self.state_manager.update_file_state(source_identifier)

    def test_connection(self):
        logger.info(f"Testing connection for LocalFileSource at path: {self.path}")
        if not self.path.exists():
            raise FileNotFoundError(f"Source path '{self.path}' does not exist.")
        if not self.path.is_dir():
            raise NotADirectoryError(f"Source path '{self.path}' is not a directory.")
        logger.info("Connection to LocalFileSource successful.")


def _bundle_documents(text: str, origin: str) -> List[RawDocument]:
    documents = []
    for index, content in enumerate(split_bundle(text), start=1):
        documents.append(RawDocument(content=content, metadata={"source": f"{origin}#{index}"}))
    return documents


class BundleSource(BaseSource):
    """
    Loads every document of a transport-unit file.
    """

    def __init__(self, path: str, **kwargs):
        self.path = Path(path)

    def load_data(self) -> List[RawDocument]:
        logger.info(f"Reading transport unit: {self.path}")
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading bundle '{self.path}': {e}", exc_info=True)
            return []
        documents = _bundle_documents(text, str(self.path))
        logger.info(f"Split {len(documents)} documents from '{self.path}'.")
        return documents

    def update_state(self, processed_docs: List[RawDocument]):
        pass  # a bundle is always read whole

    def test_connection(self):
        logger.info(f"Testing connection for BundleSource at path: {self.path}")
        if not self.path.is_file():
            raise FileNotFoundError(f"Bundle file '{self.path}' does not exist.")
        logger.info("Connection to BundleSource successful.")


class WebBundleSource(BaseSource):
    """
    Loads a transport unit published at a URL.
    """

    def __init__(self, url: str, timeout: int = 10, **kwargs):
        self.url = url
        self.timeout = timeout
        self.headers = {"User-Agent": "higcorpus/0.1", "Accept": "text/markdown, text/plain, */*"}

    def load_data(self) -> List[RawDocument]:
        logger.info(f"Fetching transport unit from URL: {self.url}")
        try:
            response = requests.get(self.url, timeout=self.timeout, headers=self.headers)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to fetch bundle from URL '{self.url}': {e}", exc_info=True)
            return []

        documents = _bundle_documents(response.text, self.url)
        if not documents:
            logger.warning(f"No documents found at URL: {self.url}")
        return documents

    def update_state(self, processed_docs: List[RawDocument]):
        pass  # WebBundleSource is stateless

    def test_connection(self):
        logger.info(f"Testing connection for WebBundleSource at URL: {self.url}")
        try:
            response = requests.head(self.url, timeout=5, headers=self.headers)
            response.raise_for_status()
            logger.info("Connection to WebBundleSource successful.")
        except requests.exceptions.RequestException as e:
            raise ConnectionError(f"Failed to connect to URL: {self.url}") from e


class S3Source(BaseSource):
    """
    Loads document files (``.md``) and transport units (``.bundle``) from an
    S3 bucket, skipping objects whose ETag has not changed.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        state_manager: Optional[StateManager] = None,
    ):
        self.bucket_name = bucket
        self.prefix = prefix
        self.state_manager = state_manager
        self.s3_client = boto3.client("s3")

    def _list_objects(self) -> List[dict]:
        paginator = self.s3_client.get_paginator("list_objects_v2")
        objects = []
        for page in paginator.paginate(Bucket=self.bucket_name, Prefix=self.prefix):
            objects.extend(page.get("Contents", []))
        return [
            obj for obj in objects if obj["Key"].endswith((".md", BUNDLE_SUFFIX))
        ]

    def load_data(self) -> List[RawDocument]:
        logger.info(f"Loading documents from S3 bucket: {self.bucket_name}")
        try:
            all_objects = self._list_objects()
        except ClientError as e:
            logger.error(f"Error listing objects in S3 bucket: {e}", exc_info=True)
            return []

        changed_objects = []
        for obj in all_objects:
            source_id = f"s3://{self.bucket_name}/{obj['Key']}"
            etag = obj["ETag"].strip('"')
            if self.state_manager is None or self.state_manager.has_changed(source_id, etag):
                changed_objects.append(obj)

        if not changed_objects:
            logger.info("No new or changed objects detected in S3.")
            return []

        logger.info(f"Found {len(changed_objects)} new or changed objects.")

        loaded_documents = []
        for obj in changed_objects:
            key = obj["Key"]
            source_id = f"s3://{self.bucket_name}/{key}"
            try:
                response = self.s3_client.get_object(Bucket=self.bucket_name, Key=key)
                text = response["Body"].read().decode("utf-8")
            except (ClientError, UnicodeDecodeError) as e:
                logger.error(f"Error loading object {key}: {e}", exc_info=True)
                continue

            etag = obj["ETag"].strip('"')
            if key.endswith(BUNDLE_SUFFIX):
                parts = _bundle_documents(text, source_id)
            else:
                parts = [
                    RawDocument(
                        content=text,
                        metadata={"source": source_id, "default_id": PurePosixPath(key).stem},
                    )
                ]
            for part in parts:
                part.metadata.update({"object": source_id, "etag": etag, "parts": len(parts)})
            loaded_documents.extend(parts)

        return loaded_documents

    def update_state(self, processed_docs: List[RawDocument]):
        """
        Marks an object as loaded only when every document it holds was
        processed, so a bundle with a rejected part is read again next run.
        """
        if not self.state_manager:
            return
        accepted = defaultdict(set)
        for doc in processed_docs:
            source_id = doc.metadata.get("object")
            etag = doc.metadata.get("etag")
            if source_id and etag:
                accepted[(source_id, etag, doc.metadata.get("parts", 1))].add(doc.metadata.get("source"))

        for (source_id, etag, parts), sources in accepted.items():
            if len(sources) < parts:
                logger.info(
                    f"Only {len(sources)} of {parts} documents from '{source_id}' were accepted. "
                    "It will be read again."
                )
                continue
            self.state_manager.update_file_state(source_id, etag)

    def test_connection(self):
        logger.info(f"Testing connection to S3 bucket: {self.bucket_name}")
        try:
            self.s3_client.head_bucket(Bucket=self.bucket_name)
            logger.info("Connection to S3 bucket successful.")
        except NoCredentialsError as e:
            raise ConnectionError("AWS credentials not found.") from e
        except ClientError as e:
            raise ConnectionError(f"Failed to connect to S3 bucket: {self.bucket_name}") from e

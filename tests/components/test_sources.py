"""
Tests for the document source components.
"""

import pytest
from unittest.mock import patch, MagicMock
import requests

from higcorpus.components.sources import (
    LocalFileSource,
    BundleSource,
    WebBundleSource,
    S3Source,
)
from higcorpus.utils.bundle import join_bundle
from conftest import make_document_text


@pytest.fixture
def mock_state_manager():
    """Provides a mock StateManager that reports every item as changed."""
    manager = MagicMock()
    manager.has_changed.return_value = True
    return manager


def test_local_source_loads_data(corpus_dir, mock_state_manager):
    """Tests that LocalFileSource reads every document file in order."""
    source = LocalFileSource(path=str(corpus_dir), state_manager=mock_state_manager)
    documents = source.load_data()

    assert len(documents) == 2
    assert [doc.metadata["default_id"] for doc in documents] == ["ios-toggles", "universal-boxes"]
    assert documents[1].content == make_document_text()

    source.update_state(documents)
    assert mock_state_manager.update_file_state.call_count == 2


def test_local_source_skips_unchanged_and_empty_files(corpus_dir, mock_state_manager):
    (corpus_dir / "empty.md").write_text("  \n", encoding="utf-8")
    mock_state_manager.has_changed.side_effect = lambda path: "universal" not in path

    documents = LocalFileSource(path=str(corpus_dir), state_manager=mock_state_manager).load_data()
    assert [doc.metadata["default_id"] for doc in documents] == ["ios-toggles"]


def test_local_source_missing_directory(tmp_path):
    source = LocalFileSource(path=str(tmp_path / "missing"))
    assert source.load_data() == []
    with pytest.raises(FileNotFoundError):
        source.test_connection()


def test_bundle_source_loads_data(tmp_path):
    """Tests that BundleSource splits a transport unit into documents."""
    bundle = tmp_path / "corpus.bundle"
    bundle.write_text(
        join_bundle([make_document_text(), make_document_text(id="ios-toggles", platform="ios")]),
        encoding="utf-8",
    )
    documents = BundleSource(path=str(bundle)).load_data()

    assert len(documents) == 2
    assert documents[0].metadata["source"] == f"{bundle}#1"
    assert documents[1].metadata["source"] == f"{bundle}#2"
    assert "default_id" not in documents[0].metadata


@patch("requests.get")
def test_web_source_loads_data(mock_requests_get):
    """Tests that WebBundleSource fetches and splits a published unit."""
    mock_response = MagicMock()
    mock_response.text = join_bundle([make_document_text()])
    mock_requests_get.return_value = mock_response

    source = WebBundleSource(url="https://example.com/corpus.bundle")
    documents = source.load_data()

    assert len(documents) == 1
    assert documents[0].content == make_document_text()
    assert documents[0].metadata["source"] == "https://example.com/corpus.bundle#1"


@patch("requests.get", side_effect=requests.exceptions.ConnectionError("down"))
def test_web_source_handles_request_errors(mock_requests_get):
    assert WebBundleSource(url="https://example.com/corpus.bundle").load_data() == []


@patch("requests.head", side_effect=requests.exceptions.Timeout("slow"))
def test_web_source_connection_failure(mock_requests_head):
    with pytest.raises(ConnectionError):
        WebBundleSource(url="https://example.com/corpus.bundle").test_connection()


@patch("boto3.client")
def test_s3_source_loads_data(mock_boto3_client, mock_state_manager):
    """Tests that S3Source loads markdown objects and transport units."""
    mock_s3 = MagicMock()
    mock_boto3_client.return_value = mock_s3
    mock_s3.get_paginator.return_value.paginate.return_value = [
        {
            "Contents": [
                {"Key": "docs/universal-boxes.md", "ETag": '"123"'},
                {"Key": "docs/notes.txt", "ETag": '"456"'},
            ]
        },
        {"Contents": [{"Key": "docs/ios.bundle", "ETag": '"789"'}]},
    ]
    bodies = {
        "docs/universal-boxes.md": make_document_text().encode("utf-8"),
        "docs/ios.bundle": join_bundle(
            [make_document_text(id="ios-a", platform="ios"), make_document_text(id="ios-b", platform="ios")]
        ).encode("utf-8"),
    }
    mock_s3.get_object.side_effect = lambda Bucket, Key: {
        "Body": MagicMock(read=MagicMock(return_value=bodies[Key]))
    }

    source = S3Source(bucket="test-bucket", prefix="docs/", state_manager=mock_state_manager)
    documents = source.load_data()

    assert len(documents) == 3
    assert documents[0].metadata["default_id"] == "universal-boxes"
    assert documents[0].metadata["etag"] == "123"
    assert documents[2].metadata["source"] == "s3://test-bucket/docs/ios.bundle#2"
    mock_state_manager.has_changed.assert_any_call("s3://test-bucket/docs/universal-boxes.md", "123")

    source.update_state(documents[:1])
    mock_state_manager.update_file_state.assert_called_once_with(
        "s3://test-bucket/docs/universal-boxes.md", "123"
    )


@patch("boto3.client")
def test_s3_source_marks_bundles_only_when_every_part_is_accepted(mock_boto3_client, mock_state_manager):
    """A bundle with a rejected part is read again on the next run."""
    mock_s3 = MagicMock()
    mock_boto3_client.return_value = mock_s3
    mock_s3.get_paginator.return_value.paginate.return_value = [
        {"Contents": [{"Key": "ios.bundle", "ETag": '"abc"'}]}
    ]
    body = join_bundle(
        [make_document_text(id="ios-a", platform="ios"), make_document_text(id="ios-b", platform="ios")]
    ).encode("utf-8")
    mock_s3.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=body))}

    source = S3Source(bucket="test-bucket", state_manager=mock_state_manager)
    documents = source.load_data()
    assert [doc.metadata["parts"] for doc in documents] == [2, 2]

    source.update_state(documents[:1])
    mock_state_manager.update_file_state.assert_not_called()

    source.update_state(documents)
    mock_state_manager.update_file_state.assert_called_once_with("s3://test-bucket/ios.bundle", "abc")

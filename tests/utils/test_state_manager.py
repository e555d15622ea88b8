"""
Tests for the state manager and its backends.
"""

import json
from unittest.mock import patch, MagicMock

from higcorpus.utils.state_manager import (
    JSONStateManager,
    RedisStateManager,
    StateManager,
    empty_state,
    hash_text,
)


def test_json_backend_starts_fresh_without_a_file(tmp_path):
    backend = JSONStateManager(path=str(tmp_path / "state.json"))
    assert backend.load_state() == empty_state()


def test_json_backend_recovers_from_a_corrupt_file(tmp_path):
    state_file = tmp_path / "state.json"
    state_file.write_text("{not json", encoding="utf-8")
    assert JSONStateManager(path=str(state_file)).load_state() == empty_state()


def test_state_manager_detects_changed_files(tmp_path):
    """Tests that a file is reported again only after its content changes."""
    state_file = tmp_path / "state.json"
    doc = tmp_path / "doc.md"
    doc.write_text("first", encoding="utf-8")

    manager = StateManager(backend=JSONStateManager(path=str(state_file)))
    assert manager.has_changed(str(doc))
    manager.update_file_state(str(doc))
    manager.update_run_timestamp()
    manager.save()

    reloaded = StateManager(backend=JSONStateManager(path=str(state_file)))
    assert not reloaded.has_changed(str(doc))
    assert reloaded.get_last_run_timestamp() is not None

    doc.write_text("second", encoding="utf-8")
    assert reloaded.has_changed(str(doc))


def test_state_manager_uses_given_hashes(tmp_path):
    manager = StateManager(backend=JSONStateManager(path=str(tmp_path / "state.json")))
    manager.update_file_state("s3://bucket/ios-toggles.md", "etag-1")

    assert not manager.has_changed("s3://bucket/ios-toggles.md", "etag-1")
    assert manager.has_changed("s3://bucket/ios-toggles.md", "etag-2")
    assert manager.processed_items() == {"s3://bucket/ios-toggles.md": "etag-1"}


def test_unreadable_files_are_not_reported(tmp_path):
    manager = StateManager(backend=JSONStateManager(path=str(tmp_path / "state.json")))
    assert not manager.has_changed(str(tmp_path / "missing.md"))


def test_clear_removes_the_state_file(tmp_path):
    state_file = tmp_path / "state.json"
    manager = StateManager(backend=JSONStateManager(path=str(state_file)))
    manager.update_file_state("a.md", hash_text("a"))
    manager.save()
    assert json.loads(state_file.read_text())["processed_items"] == {"a.md": hash_text("a")}

    manager.clear()
    assert not state_file.exists()
    assert manager.processed_items() == {}


@patch("redis.Redis")
def test_redis_backend_round_trips_state(mock_redis_cls):
    """Tests that the Redis backend stores the state as JSON under one key."""
    mock_client = MagicMock()
    mock_redis_cls.return_value = mock_client
    mock_client.get.return_value = None

    backend = RedisStateManager(host="localhost", port=6379, state_key="corpus")
    mock_client.ping.assert_called_once()
    assert backend.load_state() == empty_state()

    state = {"processed_items": {"a.md": "h"}, "last_run_timestamp": None}
    backend.save_state(state)
    mock_client.set.assert_called_once_with("corpus", json.dumps(state))

    mock_client.get.return_value = json.dumps(state)
    assert backend.load_state() == state

    backend.clear_state()
    mock_client.delete.assert_called_once_with("corpus")

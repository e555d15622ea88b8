"""
State tracking for incremental corpus loads.

The StateManager remembers a content hash for every document source it has
already loaded (a file path, an S3 key) so that later runs only pick up new
or changed documents. Storage is delegated to a backend: a JSON file or a
Redis key.
"""

import json
import hashlib
from pathlib import Path
from typing import Dict, Optional
import logging
from datetime import datetime, timezone
from abc import ABC, abstractmethod
import redis

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILE = ".higcorpus_state.json"


def empty_state() -> Dict:
    return {"processed_items": {}, "last_run_timestamp": None}


def hash_text(text: str) -> str:
    """sha256 of a document's text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class BaseStateManager(ABC):
    """Storage backend for the StateManager."""

    @abstractmethod
    def load_state(self) -> Dict:
        """Returns the stored state, or a fresh one."""
        pass

    @abstractmethod
    def save_state(self, state: Dict):
        """Persists the given state."""
        pass

    @abstractmethod
    def clear_state(self):
        """Forgets everything stored so far."""
        pass


class JSONStateManager(BaseStateManager):
    """Keeps state in a JSON file next to the corpus."""

    def __init__(self, path: str = DEFAULT_STATE_FILE):
        self.state_file_path = Path(path)

    def load_state(self) -> Dict:
        if not self.state_file_path.exists():
            logger.debug(f"No state file at '{self.state_file_path}', starting fresh.")
            return empty_state()

        logger.debug(f"Loading state from '{self.state_file_path}'")
        try:
            with open(self.state_file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            logger.error(
                f"Could not read state file '{self.state_file_path}'. Starting fresh.",
                exc_info=True,
            )
            return empty_state()

    def save_state(self, state: Dict):
        logger.debug(f"Saving state to '{self.state_file_path}'")
        try:
            with open(self.state_file_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=4)
            logger.info(f"Corpus state saved to '{self.state_file_path}'.")
        except IOError as e:
            logger.error(f"Error saving state file: {e}", exc_info=True)

    def clear_state(self):
        if self.state_file_path.exists():
            self.state_file_path.unlink()
            logger.info(f"Deleted state file: {self.state_file_path}")


class RedisStateManager(BaseStateManager):
    """Keeps state as a JSON string under a single Redis key."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        state_key: str = "higcorpus_state",
    ):
        try:
            self.redis_client = redis.Redis(
                host=host, port=port, db=db, decode_responses=True
            )
            self.state_key = state_key
            self.redis_client.ping()
            logger.info(f"Connected to Redis at {host}:{port}")
        except redis.exceptions.ConnectionError as e:
            logger.error(f"Error connecting to Redis: {e}", exc_info=True)
            raise

    def load_state(self) -> Dict:
        logger.debug(f"Loading state from Redis key '{self.state_key}'")
        try:
            stored = self.redis_client.get(self.state_key)
            return json.loads(stored) if stored else empty_state()
        except redis.exceptions.RedisError as e:
            logger.error(f"Error loading state from Redis: {e}", exc_info=True)
            return empty_state()

    def save_state(self, state: Dict):
        logger.debug(f"Saving state to Redis key '{self.state_key}'")
        try:
            self.redis_client.set(self.state_key, json.dumps(state))
            logger.info(f"Corpus state saved to Redis key '{self.state_key}'.")
        except redis.exceptions.RedisError as e:
            logger.error(f"Error saving state to Redis: {e}", exc_info=True)

    def clear_state(self):
        try:
            self.redis_client.delete(self.state_key)
            logger.info(f"Deleted Redis key '{self.state_key}'")
        except redis.exceptions.RedisError as e:
            logger.error(f"Error deleting state from Redis: {e}", exc_info=True)


class StateManager:
    """
    Tracks which document sources have been loaded, and with which hash.

    The backend (such as JSONStateManager) handles the actual persistence.
    """

    def __init__(self, backend: Optional[BaseStateManager] = None):
        self.backend = backend or JSONStateManager()
        self.state = self.backend.load_state()
        self.state.setdefault("processed_items", {})
        self.state.setdefault("last_run_timestamp", None)

    def save(self):
        """Persists the current state through the backend."""
        self.backend.save_state(self.state)

    def clear(self):
        self.state = empty_state()
        self.backend.clear_state()

    def get_file_hash(self, file_path: Path) -> Optional[str]:
        hash_obj = hashlib.sha256()
        try:
            with open(file_path, "rb") as f:
                for block in iter(lambda: f.read(4096), b""):
                    hash_obj.update(block)
            return hash_obj.hexdigest()
        except OSError as e:
            logger.error(
                f"Could not compute hash for file {file_path}: {e}",
                exc_info=True,
            )
            return None

    def has_changed(self, item_id: str, new_hash: Optional[str] = None) -> bool:
        """
        Checks whether an item is new or differs from the last load.

        Args:
            item_id (str): The item's identifier, a file path or object URI.
            new_hash (Optional[str]): The item's current hash. When omitted,
                item_id is treated as a file path and hashed.

        Returns:
            bool: True if the item is new or changed. An unreadable file is
                reported as unchanged.
        """
        current_hash = new_hash or self.get_file_hash(Path(item_id))
        if not current_hash:
            return False

        changed = current_hash != self.state["processed_items"].get(item_id)
        if changed:
            logger.debug(f"Change detected for item '{item_id}'.")
        return changed

    def update_file_state(self, item_id: str, new_hash: Optional[str] = None):
        """Records the item's current hash as loaded."""
        current_hash = new_hash or self.get_file_hash(Path(item_id))
        if current_hash:
            self.state["processed_items"][item_id] = current_hash
            logger.debug(f"Updated state for item '{item_id}'.")

    def processed_items(self) -> Dict[str, str]:
        return dict(self.state["processed_items"])

    def get_last_run_timestamp(self) -> Optional[str]:
        return self.state.get("last_run_timestamp")

    def update_run_timestamp(self):
        self.state["last_run_timestamp"] = datetime.now(timezone.utc).isoformat()

"""Key/value persistence for match statistics, history and preferences.

Values are plain JSON-compatible data. Writes are fire-and-forget: a failed
write is logged and the game carries on.
"""

import abc
import copy
import json
import logging
import os
import tempfile
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

STATS_KEY = "stats"
HISTORY_KEY = "history"
PLAYER_SYMBOL_KEY = "player_symbol"


class Store(abc.ABC):
    @abc.abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent or unreadable."""

    @abc.abstractmethod
    def save(self, key: str, value: Any) -> None:
        ...

    @abc.abstractmethod
    def clear(self, key: str) -> None:
        ...


class MemoryStore(Store):
    """Keeps values in a dict; used in safe mode and in tests."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def load(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def save(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(Store):
    """One ``<key>.json`` file per key inside a directory."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read %s (%s); using defaults", path, exc)
            return None

    def save(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        temp_path = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", text=True)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(temp_path, path)
            temp_path = None
        except (OSError, TypeError) as exc:
            logger.error("Could not save %s (%s); latest results may not be persisted", path, exc)
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

    def clear(self, key: str) -> None:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error("Could not remove %s (%s)", self.path_for(key), exc)


class BackgroundStore(Store):
    """Hands writes to one worker thread so callers never wait on disk.

    Reads are answered from the latest written value when there is one, so a
    load right after a save sees the new data before the worker has run.
    Writes reach the backend in the order they were made.
    """

    def __init__(self, backend: Store, executor: Optional[Executor] = None):
        self.backend = backend
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="tictactoe-store")
        self._latest: Dict[str, Any] = {}
        self._last_write: Optional[Future] = None
        self._lock = threading.Lock()

    def load(self, key: str) -> Optional[Any]:
        with self._lock:
            if key in self._latest:
                return copy.deepcopy(self._latest[key])
        return self.backend.load(key)

    def save(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            self._latest[key] = value
            self._submit(self.backend.save, key, value)

    def clear(self, key: str) -> None:
        with self._lock:
            self._latest[key] = None
            self._submit(self.backend.clear, key)

    def _submit(self, fn, *args) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_failed_write)
        self._last_write = future

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every write made so far has reached the backend."""
        future = self._last_write
        if future is not None:
            wait([future], timeout=timeout)

    def close(self) -> None:
        self.flush()
        self._executor.shutdown(wait=True)


def _log_failed_write(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Background write failed: %s", exc)

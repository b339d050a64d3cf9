# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Watches schema files and test documents and reports debounced changes.

Filesystem events go through three stages:

1. the ``watchdog`` observer thread maps each event path to a
   :class:`WatchEvent` (or drops it);
2. a per-path timer coalesces bursts of events for the same path;
3. one worker thread takes debounced events off a queue and calls the
   callback, so callbacks never overlap.
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Set

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ..exceptions import OperationCancelledError
from .key import SCHEMA_SUFFIX, Key, PathType
from .registry import Registry
from .resolver import ResolvedTarget
from .schema import TestDocType
from .searcher import Searcher

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.1
_CANCEL_POLL_SECONDS = 0.2
_STOP = object()


@dataclass(frozen=True)
class WatchEvent:
    """A changed schema (``test_path`` unset) or a changed test document."""

    key: Key
    test_path: Optional[Path] = None


class _RegistryEventHandler(FileSystemEventHandler):
    def __init__(self, notify: Callable[[str], None]):
        self._notify = notify

    def on_created(self, event):
        if not event.is_directory:
            self._notify(event.src_path)

    def on_modified(self, event):
        if not event.is_directory:
            self._notify(event.src_path)

    def on_moved(self, event):
        # Editors that save through a temporary file produce a move.
        if not event.is_directory:
            self._notify(event.dest_path)


class Watcher:
    """Watches the schemas of a resolved target.

    The set of watched schemas is fixed when :meth:`watch` starts; schema
    files created later are not reported.
    """

    def __init__(
        self,
        registry: Registry,
        target: ResolvedTarget,
        debounce: float = DEBOUNCE_SECONDS,
        observer_factory=Observer,
    ):
        self.registry = registry
        self.target = target
        self.debounce = debounce
        self.ready = threading.Event()
        self._observer_factory = observer_factory
        self._queue: "queue.Queue" = queue.Queue()
        self._timers: Dict[str, threading.Timer] = {}
        self._timers_lock = threading.Lock()
        self._schema_files: Dict[str, Key] = {}
        self._homes: Dict[str, Key] = {}
        self._started = False

    def _collect_targets(self) -> Path:
        root = self.registry.root_directory
        if self.target.key is not None:
            keys: Set[Key] = {self.target.key}
            watch_root = self.target.key.path(PathType.HOME_DIR, root)
        else:
            searcher = Searcher(self.registry, self.target.scope or "")
            keys = set(searcher.schemas())
            watch_root = searcher.search_root
        for key in keys:
            self._schema_files[os.path.abspath(key.path(PathType.FILE_PATH, root))] = key
            self._homes[os.path.abspath(key.path(PathType.HOME_DIR, root))] = key
        return watch_root

    def event_for_path(self, path: str) -> Optional[WatchEvent]:
        """Map a changed path to a watch event, or ``None`` if it is not relevant."""
        path = os.path.abspath(path)
        if path.endswith(SCHEMA_SUFFIX):
            key = self._schema_files.get(path)
            return WatchEvent(key) if key is not None else None
        if not path.endswith(".json"):
            return None
        test_dir = os.path.dirname(path)
        if os.path.basename(test_dir) not in (TestDocType.PASS.value, TestDocType.FAIL.value):
            return None
        key = self._homes.get(os.path.dirname(test_dir))
        if key is None:
            return None
        return WatchEvent(key, Path(path))

    def watch(self, callback: Callable[[WatchEvent], None], cancel_event: threading.Event) -> None:
        """Watch until ``cancel_event`` is set.

        :attr:`ready` is set once the subscription is in place.  Errors raised
        by ``callback`` are logged and do not stop the watch.

        Raises:
            OperationCancelledError: Always, once the watch has been cancelled.
            OSError: If the observer cannot be started.
        """
        if self._started:
            raise RuntimeError("a Watcher can only be started once")
        self._started = True

        watch_root = self._collect_targets()
        observer = self._observer_factory()
        observer.schedule(_RegistryEventHandler(self._notify), str(watch_root), recursive=True)
        observer.start()

        worker = threading.Thread(
            target=self._work, args=(callback,), name="jsm-watch-worker", daemon=True
        )
        worker.start()
        logger.info(f"Watching {self.target} for changes. Press Ctrl+C to stop.")
        self.ready.set()

        try:
            while not cancel_event.wait(_CANCEL_POLL_SECONDS):
                pass
        finally:
            observer.stop()
            observer.join()
            with self._timers_lock:
                for timer in self._timers.values():
                    timer.cancel()
                self._timers.clear()
            self._queue.put(_STOP)
            worker.join()
        raise OperationCancelledError("watch cancelled")

    def _notify(self, path: str) -> None:
        event = self.event_for_path(path)
        if event is None:
            return
        with self._timers_lock:
            pending = self._timers.get(path)
            if pending is not None:
                pending.cancel()
            timer = threading.Timer(self.debounce, self._emit)
            timer.args = (path, event, timer)
            timer.daemon = True
            self._timers[path] = timer
            timer.start()

    def _emit(self, path: str, event: WatchEvent, timer: threading.Timer) -> None:
        with self._timers_lock:
            if self._timers.get(path) is not timer:
                return
            del self._timers[path]
        self._queue.put(event)

    def _work(self, callback: Callable[[WatchEvent], None]) -> None:
        self.ready.wait()
        while True:
            event = self._queue.get()
            if event is _STOP:
                return
            try:
                callback(event)
            except OperationCancelledError:
                logger.debug(f"Processing of {event.key} cancelled")
            except Exception:
                logger.exception(f"Error while processing change to {event.key}")

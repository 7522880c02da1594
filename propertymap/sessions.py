# propertymap/sessions.py
"""In-memory registry of open screens (capture or listing), keyed by session id.

A screen normally closes itself when the page is left. Screens whose page
never said goodbye are dropped once they sit idle longer than the timeout.
"""
import os
import threading
import time
import uuid
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar
from dotenv import load_dotenv
from .utils import logger

load_dotenv()

SESSION_IDLE_SECONDS = float(os.getenv("SESSION_IDLE_SECONDS", "1800"))

W = TypeVar("W")


class ScreenSessions(Generic[W]):
    def __init__(self, factory: Callable[[], W], idle_seconds: float = SESSION_IDLE_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.factory = factory
        self.idle_seconds = idle_seconds
        self.clock = clock
        self._sessions: Dict[str, W] = {}
        self._touched: Dict[str, float] = {}
        self._lock = threading.Lock()

    def open(self) -> Tuple[str, W]:
        self.sweep()
        sid = uuid.uuid4().hex
        workflow = self.factory()
        with self._lock:
            self._sessions[sid] = workflow
            self._touched[sid] = self.clock()
        return sid, workflow

    def get(self, sid: str) -> Optional[W]:
        with self._lock:
            workflow = self._sessions.get(sid)
            if workflow is not None:
                self._touched[sid] = self.clock()
            return workflow

    def close(self, sid: str) -> bool:
        with self._lock:
            workflow = self._sessions.pop(sid, None)
            self._touched.pop(sid, None)
        if workflow is None:
            return False
        workflow.close()
        return True

    def sweep(self) -> int:
        """Close every session idle for longer than `idle_seconds`."""
        cutoff = self.clock() - self.idle_seconds
        with self._lock:
            stale = [sid for sid, at in self._touched.items() if at < cutoff]
        for sid in stale:
            self.close(sid)
        if stale:
            logger.info("Expired %d idle sessions", len(stale))
        return len(stale)

    def __len__(self):
        return len(self._sessions)

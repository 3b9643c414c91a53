"""SSE notifications and the single background-task slot.

Operator actions that take a while (a poll tick) run in one background
thread at a time; their outcome, and every scheduler alert, is pushed to
connected ``/events`` clients as a success or failure notification.
"""

from __future__ import annotations

import json
import queue
import threading
from typing import Callable

from fantasy_league.logging_config import get_logger
from fantasy_league.utils.time_helpers import to_db, utc_now

log = get_logger(__name__)

_task_lock = threading.Lock()
_current_task: dict | None = None
_sse_queues: list[queue.Queue] = []
_sse_queues_lock = threading.Lock()


def _payload(msg: str, event: str) -> str:
    return json.dumps({"message": msg, "event": event, "at": to_db(utc_now())})


def broadcast(msg: str, event: str = "info") -> None:
    """Send an SSE message to all connected clients."""
    data = _payload(msg, event)
    with _sse_queues_lock:
        dead = []
        for q in _sse_queues:
            try:
                q.put_nowait(data)
            except queue.Full:
                dead.append(q)
        for q in dead:
            _sse_queues.remove(q)


def subscriber_count() -> int:
    with _sse_queues_lock:
        return len(_sse_queues)


def run_in_background(name: str, fn: Callable[[], None]) -> bool:
    """Run *fn* in a daemon thread unless another task holds the slot.

    Returns False when busy; the caller answers 409.
    """
    global _current_task

    if not _task_lock.acquire(blocking=False):
        return False

    def wrapper():
        global _current_task
        try:
            fn()
            broadcast(f"{name} finished", event="success")
        except Exception as exc:
            log.error("Background task %s failed: %s", name, exc, exc_info=True)
            broadcast(f"{name} failed: {exc}", event="failure")
        finally:
            _current_task = None
            _task_lock.release()

    t = threading.Thread(target=wrapper, daemon=True, name=f"task-{name}")
    _current_task = {"name": name, "started_at": to_db(utc_now())}
    t.start()
    return True


def get_current_task() -> dict | None:
    """Return info about the running task, or None."""
    return _current_task


def create_sse_stream():
    """Create an SSE event stream generator for one subscriber."""
    q: queue.Queue = queue.Queue(maxsize=200)
    with _sse_queues_lock:
        _sse_queues.append(q)

    def stream():
        try:
            task = _current_task
            status = f"Running: {task['name']}" if task else "Idle"
            yield f"data: {_payload(status, 'status')}\n\n"
            while True:
                try:
                    data = q.get(timeout=30)
                    yield f"data: {data}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            with _sse_queues_lock:
                if q in _sse_queues:
                    _sse_queues.remove(q)

    return stream()

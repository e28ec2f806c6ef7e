"""Batch sessions.

A batch session runs an ordered list of requests across devices. Requests
for the same device run one after another, in submission order, across
every session of a manager. Different devices run concurrently up to a
limit shared by all sessions. Cancellation is cooperative: running
actions finish and queued ones are recorded as cancelled.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from droidctl.models.action import ActionRecord, ActionRequest, Outcome, create_action_record
from droidctl.models.session import SessionHandle, SessionProgress

if TYPE_CHECKING:
    from droidctl.core.executor import ActionExecutor

logger = logging.getLogger(__name__)

RecordCallback = Callable[[ActionRecord], None]


class _Session:
    """Mutable state of one submitted batch."""

    def __init__(
        self,
        handle: SessionHandle,
        requests: Sequence[ActionRequest],
        on_record: RecordCallback | None = None,
    ) -> None:
        self.handle = handle
        self.on_record = on_record
        self.requests = tuple(requests)
        self.states: list[Outcome] = [Outcome.PENDING] * len(self.requests)
        self.records: list[ActionRecord | None] = [None] * len(self.requests)
        self.cancel = threading.Event()
        self.finished = threading.Event()
        self.open_groups = 0
        self.lock = threading.Lock()

    def mark_running(self, index: int) -> None:
        with self.lock:
            self.states[index] = Outcome.RUNNING

    def finish(self, index: int, record: ActionRecord) -> None:
        with self.lock:
            self.states[index] = record.outcome
            self.records[index] = record

    def finish_group(self) -> None:
        with self.lock:
            self.open_groups -= 1
            if self.open_groups == 0:
                self.finished.set()

    def progress(self) -> SessionProgress:
        with self.lock:
            states = list(self.states)
        return SessionProgress(
            pending=states.count(Outcome.PENDING),
            running=states.count(Outcome.RUNNING),
            succeeded=states.count(Outcome.SUCCEEDED),
            failed=states.count(Outcome.FAILED),
            cancelled=states.count(Outcome.CANCELLED),
        )


class SessionManager:
    """Submits, tracks and cancels batch sessions.

    All sessions share one worker pool and one FIFO queue per device serial,
    so a device never receives commands from two sessions at once.

    Attributes:
        max_parallel: Maximum number of devices processed at the same time.
    """

    def __init__(
        self,
        executor: ActionExecutor,
        max_parallel: int = 4,
    ) -> None:
        if max_parallel < 1:
            msg = f"max_parallel must be at least 1, got {max_parallel}"
            raise ValueError(msg)
        self._executor = executor
        self._max_parallel = max_parallel
        self._sessions: dict[str, _Session] = {}
        self._queues: dict[str, deque[tuple[_Session, list[int]]]] = {}
        self._pool = ThreadPoolExecutor(
            max_workers=max_parallel,
            thread_name_prefix="droidctl-session",
        )
        self._lock = threading.Lock()

    @property
    def max_parallel(self) -> int:
        return self._max_parallel

    def submit(
        self,
        requests: Sequence[ActionRequest],
        on_record: RecordCallback | None = None,
    ) -> SessionHandle:
        """Start a batch session.

        Each device's requests are queued behind those of earlier sessions
        for the same device.

        Args:
            requests: Requests in submission order.
            on_record: Called from the worker thread with every finished record.

        Returns:
            Handle for progress, cancellation and results.
        """
        handle = SessionHandle(id=uuid.uuid4().hex[:12])
        session = _Session(handle, requests, on_record)

        # Group request indexes per device, keeping submission order.
        groups: dict[str, list[int]] = {}
        for index, request in enumerate(session.requests):
            groups.setdefault(request.device_serial, []).append(index)

        session.open_groups = len(groups)
        if not groups:
            session.finished.set()

        idle: list[str] = []
        with self._lock:
            self._sessions[handle.id] = session
            for serial, indexes in groups.items():
                queue = self._queues.get(serial)
                if queue is None:
                    queue = self._queues[serial] = deque()
                    idle.append(serial)
                queue.append((session, indexes))

        for serial in idle:
            self._pool.submit(self._drain, serial)

        logger.info(
            "Submitted session %s: %d request(s) on %d device(s)",
            handle.id,
            len(session.requests),
            len(groups),
        )
        return handle

    def progress(self, handle: SessionHandle) -> SessionProgress:
        """Return per-outcome counts of a session.

        Raises:
            KeyError: If the handle is unknown.
        """
        return self._get(handle).progress()

    def cancel(self, handle: SessionHandle) -> None:
        """Request cancellation of a session.

        Running actions complete; queued actions become cancelled records.

        Raises:
            KeyError: If the handle is unknown.
        """
        logger.info("Cancelling session %s", handle.id)
        self._get(handle).cancel.set()

    def wait(
        self,
        handle: SessionHandle,
        timeout: float | None = None,
    ) -> tuple[ActionRecord, ...]:
        """Wait for every request to reach a terminal outcome.

        Args:
            handle: Session handle.
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            Records in submission order.

        Raises:
            KeyError: If the handle is unknown.
            TimeoutError: If the session is still running after ``timeout``.
        """
        session = self._get(handle)
        if not session.finished.wait(timeout):
            msg = f"Session {handle.id} still running after {timeout}s"
            raise TimeoutError(msg)

        with session.lock:
            return tuple(r for r in session.records if r is not None)

    def discard(self, handle: SessionHandle) -> None:
        """Forget a finished session. Journal entries are unaffected.

        Raises:
            KeyError: If the handle is unknown.
            RuntimeError: If the session is still running.
        """
        session = self._get(handle)
        if not session.finished.is_set():
            msg = f"Session {handle.id} is still running"
            raise RuntimeError(msg)
        with self._lock:
            self._sessions.pop(handle.id, None)

    def shutdown(self) -> None:
        """Stop the worker pool after queued work has finished."""
        self._pool.shutdown(wait=True)

    def _get(self, handle: SessionHandle) -> _Session:
        with self._lock:
            session = self._sessions.get(handle.id)
        if session is None:
            msg = f"Unknown session: {handle.id}"
            raise KeyError(msg)
        return session

    def _drain(self, serial: str) -> None:
        """Work through one device's queue until it is empty."""
        while True:
            with self._lock:
                queue = self._queues[serial]
                if not queue:
                    del self._queues[serial]
                    return
                session, indexes = queue.popleft()
            self._run_device(session, indexes)

    def _run_device(self, session: _Session, indexes: list[int]) -> None:
        """Run one session's requests for a device, in order."""
        try:
            for index in indexes:
                request = session.requests[index]
                if session.cancel.is_set():
                    record = self._cancelled(request)
                else:
                    session.mark_running(index)
                    record = self._execute(request, session.cancel)
                session.finish(index, record)
                self._report(session, record)
        finally:
            session.finish_group()

    def _report(self, session: _Session, record: ActionRecord) -> None:
        if session.on_record is None:
            return
        try:
            session.on_record(record)
        except Exception:  # noqa: BLE001
            logger.exception("Record callback failed for %s", record.request.identifier)

    def _execute(self, request: ActionRequest, cancel: threading.Event) -> ActionRecord:
        try:
            return self._executor.execute(request, cancel)
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error executing %s", request.identifier)
            return create_action_record(request, Outcome.FAILED, error=str(e))

    def _cancelled(self, request: ActionRequest) -> ActionRecord:
        try:
            return self._executor.cancelled(request)
        except OSError as e:
            logger.error("Cannot journal cancelled %s: %s", request.identifier, e)
            return create_action_record(request, Outcome.CANCELLED, error="cancelled")

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional, Protocol, Tuple, assert_never

from ..errors import InvalidTaskStatus, TaskCancelled
from ..models import LogChunk, TaskResult, TaskStatus

logger = logging.getLogger(__name__)

WAIT_INTERVAL = 2.0  # seconds between two status polls
READ_RESULTS_BATCH = 20  # rows fetched per result page

WAITING_NOTICE = "waiting for resources"
TIMEOUT_NOTICE = "waiting for resources timeout"


class TaskService(Protocol):
    def create_task(self, command: str) -> Tuple[str, TaskStatus]: ...

    def get_status(self, task_id: str) -> TaskStatus: ...

    def read_logs(self, task_id: str, offset: int) -> LogChunk: ...

    def get_results(self, task_id: str, batch_size: int) -> TaskResult: ...


class TrackStrategy(Enum):
    QUIET = "quiet"  # poll status only
    LOGGING = "logging"  # narrate resource waits and stream task logs


def track_task(
    service: TaskService,
    task_id: str,
    status: TaskStatus,
    result_expected: bool,
    strategy: TrackStrategy = TrackStrategy.QUIET,
    *,
    cancel: Optional[threading.Event] = None,
    emit: Callable[[str], None] = print,
) -> Optional[TaskResult]:
    """
    Poll ``task_id`` until it reaches a finished status.

    Returns the aggregated result of a completed task when one is expected,
    otherwise None. Any other finished status raises InvalidTaskStatus.
    Errors from the service abort tracking as they are.
    """
    status = TaskStatus(status)
    narrate = strategy is TrackStrategy.LOGGING
    log_offset = 0

    while not status.is_finished:
        if narrate:
            if status in (TaskStatus.WAITING, TaskStatus.ALLOCATE):
                emit(WAITING_NOTICE)
            elif status is TaskStatus.RUNNING and log_offset >= 0:
                log_offset = _read_logs(service, task_id, log_offset, emit)
        _wait(task_id, cancel)
        status = TaskStatus(service.get_status(task_id))
        logger.debug("task %s status=%s", task_id, status.name)

    if narrate:
        if status is TaskStatus.EXPIRED:
            emit(TIMEOUT_NOTICE)
            raise InvalidTaskStatus(status)
        if log_offset >= 0:
            log_offset = _read_logs(service, task_id, log_offset, emit)

    return _finish(service, task_id, status, result_expected)


def _finish(
    service: TaskService, task_id: str, status: TaskStatus, result_expected: bool
) -> Optional[TaskResult]:
    # every status is listed so a new one fails type checking until handled here
    match status:
        case TaskStatus.COMPLETED:
            if not result_expected:
                return None
            logger.debug("fetching results of task %s", task_id)
            return service.get_results(task_id, READ_RESULTS_BATCH)
        case TaskStatus.FAILED | TaskStatus.EXPIRED:
            logger.info("task %s finished with status %s", task_id, status.name)
            raise InvalidTaskStatus(status)
        case TaskStatus.WAITING | TaskStatus.ALLOCATE | TaskStatus.RUNNING:
            raise AssertionError(f"task {task_id} is still {status.name}")
        case _:
            assert_never(status)


def _read_logs(service: TaskService, task_id: str, offset: int, emit: Callable[[str], None]) -> int:
    chunk = service.read_logs(task_id, offset)
    if chunk.text:
        emit(chunk.text.rstrip("\n"))
    return chunk.offset


def _wait(task_id: str, cancel: Optional[threading.Event]) -> None:
    if cancel is None:
        time.sleep(WAIT_INTERVAL)
    elif cancel.wait(WAIT_INTERVAL):
        raise TaskCancelled(task_id)

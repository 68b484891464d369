from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from alisa.models import LogChunk, TaskResult, TaskStatus


@dataclass
class FakeTaskService:
    """
    Scripted task service.

    - ``statuses`` are handed out by get_status one by one
    - ``log_offsets`` are the offsets read_logs reports back, in order
    - every call is recorded for assertions
    """

    initial_status: TaskStatus = TaskStatus.WAITING
    statuses: Sequence[TaskStatus] = ()
    log_offsets: Sequence[int] = ()
    result: TaskResult = field(default_factory=lambda: TaskResult(columns=[{"name": "a", "typ": "BIGINT"}], body=[["1"]]))
    task_id: str = "task-1"
    fail_on: Optional[str] = None
    calls: List[Tuple] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._statuses = list(self.statuses)
        self._offsets = list(self.log_offsets)

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def create_task(self, command: str) -> Tuple[str, TaskStatus]:
        self.calls.append(("create_task", command))
        self._maybe_fail("create_task")
        return self.task_id, self.initial_status

    def get_status(self, task_id: str) -> TaskStatus:
        self.calls.append(("get_status", task_id))
        self._maybe_fail("get_status")
        return self._statuses.pop(0)

    def read_logs(self, task_id: str, offset: int) -> LogChunk:
        self.calls.append(("read_logs", task_id, offset))
        self._maybe_fail("read_logs")
        new_offset = self._offsets.pop(0)
        return LogChunk(offset=new_offset, text=f"log {offset}..{new_offset}")

    def get_results(self, task_id: str, batch_size: int) -> TaskResult:
        self.calls.append(("get_results", task_id, batch_size))
        self._maybe_fail("get_results")
        return self.result

    def names(self) -> List[str]:
        return [c[0] for c in self.calls]

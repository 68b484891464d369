from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from ..config import settings
from ..models import DSNConfig, TaskResult, TaskStatus
from ..utils.dsn import parse_dsn
from .tracker import TaskService, TrackStrategy, track_task

logger = logging.getLogger(__name__)


class Alisa:
    def __init__(self, config: DSNConfig, service: TaskService, emit: Callable[[str], None] = print):
        self.config = config
        self.service = service
        self.emit = emit
        # fixed for the lifetime of the client, never re-read while polling
        self.strategy = TrackStrategy.LOGGING if config.verbose else TrackStrategy.QUIET

    @classmethod
    def from_dsn(cls, dsn: Optional[str] = None, **kwargs) -> "Alisa":
        """Build a client talking to the POP gateway; ``dsn`` defaults to ALISA_DSN."""
        from .pop_client import PopClient

        config = parse_dsn(dsn or settings.dsn or "")
        return cls(config, PopClient(config), **kwargs)

    def exec(self, command: str, cancel: Optional[threading.Event] = None) -> None:
        self.run(command, result_expected=False, cancel=cancel)

    def query(self, command: str, cancel: Optional[threading.Event] = None) -> TaskResult:
        return self.run(command, result_expected=True, cancel=cancel)

    def run(
        self, command: str, result_expected: bool, cancel: Optional[threading.Event] = None
    ) -> Optional[TaskResult]:
        task_id, status = self.service.create_task(command)
        status = TaskStatus(status)
        logger.info("created task %s (status=%s, project=%s)", task_id, status.name, self.config.project)
        return track_task(
            self.service,
            task_id,
            status,
            result_expected,
            self.strategy,
            cancel=cancel,
            emit=self.emit,
        )

    def close(self) -> None:
        close = getattr(self.service, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Alisa":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskStatus(IntEnum):
    WAITING = 1
    RUNNING = 2
    COMPLETED = 3
    FAILED = 4
    ALLOCATE = 5  # acquiring compute resources
    EXPIRED = 6  # resource wait timed out

    @property
    def is_finished(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.EXPIRED)


class DSNConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # same character sets the DSN grammar accepts
    pop_access_id: str = Field(pattern=r"^[a-zA-Z0-9_-]+$")
    pop_access_secret: str = Field(pattern=r"^[=a-zA-Z0-9_-]+$")
    pop_url: str = Field(pattern=r"^[:a-zA-Z0-9/_.-]+$")  # without http/https prefix
    pop_scheme: str = Field(default="http", min_length=1)
    env: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    with_: Mapping[str, str] = Field(default_factory=dict, alias="with", validate_default=True)
    verbose: bool = False
    project: str = Field(min_length=1)

    @field_validator("env", "with_")
    @classmethod
    def _read_only(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    def __hash__(self) -> int:
        return hash((
            self.pop_access_id,
            self.pop_access_secret,
            self.pop_url,
            self.pop_scheme,
            tuple(sorted(self.env.items())),
            tuple(sorted(self.with_.items())),
            self.verbose,
            self.project,
        ))

    @property
    def endpoint(self) -> str:
        return f"{self.pop_scheme}://{self.pop_url}"

    def format_dsn(self) -> str:
        from .utils.dsn import format_dsn

        return format_dsn(self)


class LogChunk(BaseModel):
    offset: int  # negative once the server has no more log to give
    text: str = ""


class TaskResult(BaseModel):
    columns: List[Dict[str, str]] = Field(default_factory=list)
    body: List[List[Any]] = Field(default_factory=list)

    def extend(self, other: "TaskResult") -> None:
        if not self.columns:
            self.columns = other.columns
        self.body.extend(other.body)

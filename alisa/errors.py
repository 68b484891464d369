class AlisaError(Exception):
    """Base class for every error raised by the Alisa client."""


class DSNError(AlisaError, ValueError):
    pass


class MalformedDSN(DSNError):
    def __init__(self, dsn: str):
        super().__init__(f"dsn {dsn} doesn't match pop_access_id:pop_access_secret@pop_url?params")
        self.dsn = dsn


class MissingParameter(DSNError):
    def __init__(self, key: str):
        super().__init__(f"dsn is missing required parameter {key}")
        self.key = key


class InvalidEncodedParameter(DSNError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"dsn parameter {key} is not base64 encoded JSON of strings: {reason}")
        self.key = key


class RemoteCallFailed(AlisaError):
    def __init__(self, action: str, reason: str):
        super().__init__(f"{action} failed: {reason}")
        self.action = action


class InvalidTaskStatus(AlisaError):
    def __init__(self, status):
        super().__init__(f"invalid task status={int(status)} ({status.name})")
        self.status = status


class TaskCancelled(AlisaError):
    def __init__(self, task_id: str):
        super().__init__(f"tracking of task {task_id} was cancelled")
        self.task_id = task_id

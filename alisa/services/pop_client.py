from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx
import orjson

from ..config import settings
from ..errors import RemoteCallFailed
from ..models import DSNConfig, LogChunk, TaskResult, TaskStatus

logger = logging.getLogger(__name__)


def percent_encode(value: str) -> str:
    return quote(value, safe="~")


def sign(params: Dict[str, str], secret: str, method: str = "POST") -> str:
    """HMAC-SHA1 signature of a POP request, keyed by ``secret + "&"``."""
    canonical = "&".join(f"{percent_encode(k)}={percent_encode(params[k])}" for k in sorted(params))
    string_to_sign = f"{method}&{percent_encode('/')}&{percent_encode(canonical)}"
    digest = hmac.new(f"{secret}&".encode(), string_to_sign.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class PopClient:
    """Alisa task service reached through the POP gateway described by a DSN."""

    def __init__(self, config: DSNConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self.client = httpx.Client(
            base_url=config.endpoint,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    def create_task(self, command: str) -> Tuple[str, TaskStatus]:
        envs = dict(self.config.env)
        envs["ALISA_TASK_EXEC_TARGET"] = self.config.project
        value = self._call(
            "CreateAlisaTask",
            {
                "ExecCode": command,
                "PluginName": self.config.with_.get("PluginName", ""),
                "Exec": self.config.with_.get("Exec", ""),
                "CustomerId": self.config.env.get("SKYNET_ONDUTY", ""),
                "UniqueKey": uuid.uuid4().hex,
                "Envs": orjson.dumps(envs, option=orjson.OPT_SORT_KEYS).decode(),
            },
        )
        return self._field("CreateAlisaTask", value, "alisaTaskId", str), self._status("CreateAlisaTask", value)

    def get_status(self, task_id: str) -> TaskStatus:
        value = self._call("GetAlisaTask", {"AlisaTaskId": task_id})
        return self._status("GetAlisaTask", value)

    def read_logs(self, task_id: str, offset: int) -> LogChunk:
        value = self._call("GetAlisaTaskLog", {"AlisaTaskId": task_id, "Offset": str(offset)})
        offset = self._field("GetAlisaTaskLog", value, "readLogOffset", int)
        try:
            return LogChunk(offset=offset, text=value.get("logMsg") or "")
        except ValueError as exc:
            raise RemoteCallFailed("GetAlisaTaskLog", f"malformed log reply: {exc}") from exc

    def get_results(self, task_id: str, batch_size: int) -> TaskResult:
        result = TaskResult()
        start = 0
        while True:
            value = self._call(
                "GetAlisaTaskResult",
                {"AlisaTaskId": task_id, "Start": str(start), "Limit": str(batch_size)},
            )
            try:
                page = TaskResult.model_validate(value)
            except ValueError as exc:
                raise RemoteCallFailed("GetAlisaTaskResult", f"malformed result page: {exc}") from exc
            result.extend(page)
            logger.debug("task %s: read %d result rows from %d", task_id, len(page.body), start)
            if len(page.body) < batch_size:
                return result
            start += batch_size

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "PopClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _base_params(self, action: str) -> Dict[str, str]:
        return {
            "Action": action,
            "AccessKeyId": self.config.pop_access_id,
            "Format": "JSON",
            "Version": settings.pop_api_version,
            "SignatureMethod": "HMAC-SHA1",
            "SignatureVersion": "1.0",
            "SignatureNonce": uuid.uuid4().hex,
            "Timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }

    def _call(self, action: str, extra: Dict[str, str]) -> Dict[str, Any]:
        params = self._base_params(action)
        params.update(extra)
        params["Signature"] = sign(params, self.config.pop_access_secret)

        logger.debug("POP %s %s", action, self.config.endpoint)
        try:
            r = self.client.post("/", data=params)
            r.raise_for_status()
            body = orjson.loads(r.content)
        except httpx.HTTPError as exc:
            raise RemoteCallFailed(action, str(exc)) from exc
        except orjson.JSONDecodeError as exc:
            raise RemoteCallFailed(action, f"response is not JSON: {exc}") from exc

        if not isinstance(body, dict):
            raise RemoteCallFailed(action, "response is not a JSON object")
        code = str(body.get("returnCode", ""))
        if code != "0":
            reason = body.get("returnErrorSolution") or body.get("returnMessage") or "unknown error"
            raise RemoteCallFailed(action, f"returnCode={code}: {reason}")
        value = body.get("returnValue")
        if not isinstance(value, dict):
            raise RemoteCallFailed(action, "response has no returnValue")
        return value

    @staticmethod
    def _field(action: str, value: Dict[str, Any], key: str, typ):
        if key not in value:
            raise RemoteCallFailed(action, f"response is missing {key}")
        try:
            return typ(value[key])
        except (TypeError, ValueError) as exc:
            raise RemoteCallFailed(action, f"bad {key}: {value[key]!r}") from exc

    @staticmethod
    def _status(action: str, value: Dict[str, Any]) -> TaskStatus:
        return PopClient._field(action, value, "status", lambda v: TaskStatus(int(v)))

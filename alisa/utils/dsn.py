from __future__ import annotations

import base64
import binascii
import re
from typing import Dict, List, Mapping, Optional
from urllib.parse import parse_qs, quote

import orjson

from ..errors import InvalidEncodedParameter, MalformedDSN, MissingParameter
from ..models import DSNConfig

DSN_RE = re.compile(r"^([a-zA-Z0-9_-]+):([=a-zA-Z0-9_-]+)@([:a-zA-Z0-9/_.-]+)\?([^/]+)$")

REQUIRED_PARAMETERS = ("env", "with", "curr_project")


def parse_dsn(dsn: str) -> DSNConfig:
    match = DSN_RE.match(dsn or "")
    if not match:
        raise MalformedDSN(dsn)
    access_id, access_secret, pop_url, raw_query = match.groups()

    params = parse_qs(raw_query)
    for key in REQUIRED_PARAMETERS:
        if not _single_param(params, key):
            raise MissingParameter(key)

    return DSNConfig(
        pop_access_id=access_id,
        pop_access_secret=access_secret,
        pop_url=pop_url,
        pop_scheme=_single_param(params, "scheme") or "http",
        env=decode_json_b64("env", _single_param(params, "env")),
        with_=decode_json_b64("with", _single_param(params, "with")),
        verbose=_single_param(params, "verbose") == "true",
        project=_single_param(params, "curr_project"),
    )


def format_dsn(cfg: DSNConfig) -> str:
    return (
        f"{cfg.pop_access_id}:{cfg.pop_access_secret}@{cfg.pop_url}"
        f"?env={encode_json_b64(cfg.env)}"
        f"&with={encode_json_b64(cfg.with_)}"
        f"&verbose={'true' if cfg.verbose else 'false'}"
        f"&curr_project={quote(cfg.project, safe='')}"
        f"&scheme={quote(cfg.pop_scheme, safe='')}"
    )


def encode_json_b64(mapping: Mapping[str, str]) -> str:
    # sorted keys keep the encoding stable for equal mappings
    raw = orjson.dumps(dict(mapping), option=orjson.OPT_SORT_KEYS)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def decode_json_b64(key: str, value: str) -> Dict[str, str]:
    # the query is URL-decoded first, so only the URL-safe alphabet is accepted
    stripped = value.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncodedParameter(key, str(exc)) from exc

    try:
        decoded = orjson.loads(raw)
    except orjson.JSONDecodeError as exc:
        raise InvalidEncodedParameter(key, str(exc)) from exc

    if not isinstance(decoded, dict):
        raise InvalidEncodedParameter(key, f"expected a JSON object, got {type(decoded).__name__}")
    for k, v in decoded.items():
        if not isinstance(v, str):
            raise InvalidEncodedParameter(key, f"value of {k} is not a string")
    return decoded


def _single_param(params: Dict[str, List[str]], key: str) -> Optional[str]:
    values = params.get(key)
    if not values:
        return None
    return values[0]

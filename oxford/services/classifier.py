"""
Response classification: ``RawResponse`` -> ``Success | Accepted | Failure``.

``classify`` is pure; calling it twice on the same response yields equal
outcomes. It never raises for a bad response, it returns a ``Failure``.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Tuple

from oxford.schemas.operation import OperationHandle
from oxford.schemas.outcome import Accepted, ErrorKind, Failure, Outcome, Success
from oxford.schemas.transport import RawResponse

OPERATION_LOCATION = "Operation-Location"
SUCCESS_CODES = frozenset({200, 201, 204})


def _decode_json(content: bytes) -> Tuple[bool, Any]:
    try:
        return True, json.loads(content)
    except ValueError:
        return False, None


def _success(raw: RawResponse, expect_binary: bool) -> Outcome:
    if expect_binary:
        return Success(raw.content)
    # delete/update style operations answer with an empty body
    if not raw.content.strip():
        return Success(None)
    ok, payload = _decode_json(raw.content)
    if not ok:
        return Failure(
            ErrorKind.PARSE,
            status_code=raw.status_code,
            message=f"Response with status {raw.status_code} is not valid JSON",
            raw=raw.content,
        )
    return Success(payload)


def _error_fields(body: Any) -> Tuple[Optional[str], Optional[str]]:
    if not isinstance(body, dict):
        return None, None
    err = body.get("error")
    if not isinstance(err, dict):
        err = body
    code = err.get("code")
    message = err.get("message")
    return (str(code) if code is not None else None), (str(message) if message is not None else None)


def _failure(raw: RawResponse) -> Failure:
    ok, body = _decode_json(raw.content) if raw.content.strip() else (False, None)
    code, message = _error_fields(body) if ok else (None, None)
    if code is None and message is None:
        message = raw.content.decode("utf-8", errors="replace").strip() or None
    return Failure(
        ErrorKind.API,
        status_code=raw.status_code,
        code=code,
        message=message,
        raw=body if ok else raw.content,
    )


def classify(raw: RawResponse, expect_binary: bool = False) -> Outcome:
    if raw.status_code == 202:
        location = raw.header(OPERATION_LOCATION)
        if location:
            return Accepted(OperationHandle(poll_url=location))
        # accepted without a poll location (e.g. training start)
        return _success(raw, expect_binary=False)
    if raw.status_code in SUCCESS_CODES:
        return _success(raw, expect_binary)
    return _failure(raw)

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class OperationHandle(BaseModel):
    """Location to poll for a long-running operation.

    Serializable, so a caller may persist it with ``model_dump_json()`` and
    resume polling later via ``OperationHandle.model_validate_json()``.
    """

    model_config = ConfigDict(frozen=True)

    poll_url: str


class OperationState(str, Enum):
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def terminal(self) -> bool:
        return self is not OperationState.RUNNING


# Wire values seen across the video, handwriting and training endpoints.
_STATE_BY_WIRE = {
    "notstarted": OperationState.RUNNING,
    "running": OperationState.RUNNING,
    "uploading": OperationState.RUNNING,
    "succeeded": OperationState.SUCCEEDED,
    "failed": OperationState.FAILED,
}


def parse_state(value: Optional[str]) -> Optional[OperationState]:
    if not value:
        return None
    return _STATE_BY_WIRE.get(value.strip().lower())


class OperationStatus(BaseModel):
    state: OperationState
    result: Any = None
    resource_location: Optional[str] = None
    message: Optional[str] = None
    created: Optional[str] = None
    last_action: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None

    @property
    def done(self) -> bool:
        return self.state.terminal

    @property
    def succeeded(self) -> bool:
        return self.state is OperationState.SUCCEEDED

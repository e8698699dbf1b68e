from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from oxford.core.errors import ApiError, OxfordError, ParseError
from oxford.schemas.operation import OperationHandle


class ErrorKind(str, Enum):
    API = "api"
    PARSE = "parse"


@dataclass(frozen=True)
class Success:
    payload: Any = None

    def unwrap(self) -> Any:
        return self.payload


@dataclass(frozen=True)
class Accepted:
    handle: OperationHandle

    def unwrap(self) -> OperationHandle:
        return self.handle


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    status_code: Optional[int] = None
    code: Optional[str] = None
    message: Optional[str] = None
    raw: Any = None

    def to_exception(self) -> OxfordError:
        if self.kind is ErrorKind.PARSE:
            return ParseError(self.message or "Invalid JSON body", status_code=self.status_code, raw=self.raw)
        return ApiError(self.code, self.message, status_code=self.status_code, raw=self.raw)

    def unwrap(self) -> Any:
        raise self.to_exception()


Outcome = Union[Success, Accepted, Failure]

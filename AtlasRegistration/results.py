from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


OK = "ok"
NOT_FOUND = "not_found"
ABORTED = "aborted"
PARTIAL = "partial"


@dataclass(frozen=True)
class Outcome:
    """Result of a toolbox operation.

    `status` separates the severities callers need to branch on:
    - `ok`: the operation completed.
    - `not_found`: a lookup came back empty; the lookup already printed why.
    - `aborted`: a precondition failed; nothing was done.
    - `partial`: one registration direction was skipped, the rest ran.

    Configuration errors (missing elastix parameter files) are raised, not returned.
    """

    status: str
    reason: str = ""
    message: str = ""
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == OK

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "Outcome":
        return cls(status=OK, value=value, message=message)

    @classmethod
    def not_found(cls, reason: str, message: str = "") -> "Outcome":
        return cls(status=NOT_FOUND, reason=reason, message=message)

    @classmethod
    def aborted(cls, reason: str, message: str) -> "Outcome":
        return cls(status=ABORTED, reason=reason, message=message)

    @classmethod
    def partial(cls, reason: str, message: str, value: Optional[Any] = None) -> "Outcome":
        return cls(status=PARTIAL, reason=reason, message=message, value=value)

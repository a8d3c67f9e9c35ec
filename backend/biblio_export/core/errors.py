"""Closed error taxonomy surfaced to the HTTP boundary."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional
from uuid import UUID


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNSUPPORTED_DIALECT = "unsupported_dialect"
    VALIDATION_FAILED = "validation_failed"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    MALFORMED_UPSTREAM_RESPONSE = "malformed_upstream_response"


class ExportError(Exception):
    """Base class for every failure an export can end with."""

    kind: ErrorKind
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class NotFoundError(ExportError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, identity: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Work {identity} not found")
        self.identity = identity

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["identity"] = self.identity
        return payload


class UnsupportedDialectError(ExportError):
    kind = ErrorKind.UNSUPPORTED_DIALECT
    status_code = 400

    def __init__(self, family: str, dialect: str) -> None:
        super().__init__(f"Unsupported specification: {family}::{dialect}")
        self.family = family
        self.dialect = dialect

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["family"] = self.family
        payload["dialect"] = self.dialect
        return payload


class ValidationFailedError(ExportError):
    """A work does not satisfy a dialect's mandatory-field contract."""

    kind = ErrorKind.VALIDATION_FAILED
    status_code = 400

    def __init__(
        self,
        specification: str,
        missing_fields: Iterable[str] = (),
        invalid_fields: Iterable[str] = (),
        work_id: Optional[UUID] = None,
    ) -> None:
        self.specification = specification
        self.missing_fields = tuple(missing_fields)
        self.invalid_fields = tuple(invalid_fields)
        self.work_id = work_id
        parts = []
        if self.missing_fields:
            parts.append(f"missing {', '.join(self.missing_fields)}")
        if self.invalid_fields:
            parts.append(f"invalid {', '.join(self.invalid_fields)}")
        subject = f"Work {work_id}" if work_id else "Work"
        super().__init__(f"{subject} cannot be exported as {specification}: {'; '.join(parts)}")

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["specification"] = self.specification
        payload["missingFields"] = list(self.missing_fields)
        payload["invalidFields"] = list(self.invalid_fields)
        if self.work_id:
            payload["workId"] = str(self.work_id)
        return payload


class UpstreamUnavailableError(ExportError):
    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    status_code = 503

    def __init__(self, reason: str, attempts: int) -> None:
        super().__init__(f"Metadata provider unavailable after {attempts} attempt(s): {reason}")
        self.reason = reason
        self.attempts = attempts

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["attempts"] = self.attempts
        return payload


class MalformedUpstreamResponseError(ExportError):
    kind = ErrorKind.MALFORMED_UPSTREAM_RESPONSE
    status_code = 502

    def __init__(self, reason: str) -> None:
        super().__init__(f"Metadata provider returned an unusable response: {reason}")
        self.reason = reason

# src/pagemail_client/core/errors.py

"""
Client-side errors for the PageMail REST API.

The server answers failures with RFC 7807 problem documents:
    {"type": ..., "title": ..., "status": ..., "detail": ..., "instance": ..., "errors": [...]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class FieldError:
    field: str
    message: str


@dataclass(slots=True, frozen=True)
class ProblemDetail:
    type: str
    title: str
    status: int
    detail: str | None = None
    instance: str | None = None
    errors: list[FieldError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, *, status: int, reason: str = "") -> ProblemDetail:
        """Parse a problem document; anything malformed falls back to the HTTP status line."""
        if not isinstance(data, dict) or not data.get("title"):
            return cls(type="about:blank", title=reason or f"HTTP {status}", status=status)

        errors: list[FieldError] = []
        for item in data.get("errors") or []:
            if isinstance(item, dict):
                errors.append(FieldError(field=str(item.get("field", "")), message=str(item.get("message", ""))))

        raw_status = data.get("status")
        return cls(
            type=str(data.get("type") or "about:blank"),
            title=str(data["title"]),
            status=raw_status if isinstance(raw_status, int) else status,
            detail=data.get("detail") or None,
            instance=data.get("instance") or None,
            errors=errors,
        )


class ApiError(Exception):
    """Non-2xx response from the PageMail API."""

    def __init__(self, problem: ProblemDetail) -> None:
        self.problem = problem
        text = f"{problem.title} ({problem.status})"
        if problem.detail:
            text = f"{text}: {problem.detail}"
        super().__init__(text)

    @property
    def status(self) -> int:
        return self.problem.status

    @property
    def is_not_found(self) -> bool:
        return self.problem.status == 404


class ApiConnectionError(ApiError):
    """The request never got an HTTP answer (DNS, refused connection, timeout)."""

    def __init__(self, message: str) -> None:
        super().__init__(ProblemDetail(type="about:blank", title="Connection error", status=0, detail=message))


def friendly_api_error_message(err: Exception) -> str:
    if isinstance(err, ApiConnectionError):
        return f"Cannot reach the PageMail server ({err.problem.detail}). Check PAGEMAIL_API_BASE_URL."
    if isinstance(err, ApiError):
        if err.status == 401:
            return "Not authorized. Set PAGEMAIL_API_TOKEN in .env (see .env.example)."
        if err.status == 403:
            return "Access denied."
        if err.problem.errors:
            fields = "; ".join(f"{e.field}: {e.message}" for e in err.problem.errors)
            return f"{err.problem.title}: {fields}"
        return str(err)
    msg = str(err).strip()
    return msg or err.__class__.__name__

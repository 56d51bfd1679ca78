# src/pagemail_client/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

FORMAT_PDF = "pdf"
FORMAT_HTML = "html"
FORMAT_SCREENSHOT = "screenshot"
KNOWN_FORMATS = (FORMAT_PDF, FORMAT_HTML, FORMAT_SCREENSHOT)


class TaskStatus(StrEnum):
    """
    Capture task lifecycle status as reported by the server.

    Notes:
    - pending/processing mean the server still has work to do; pollers use the short cadence.
    - unknown values are read as pending, so a newer server never makes the client poll slower.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_api(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING

    @property
    def is_pending(self) -> bool:
        return self in (TaskStatus.PENDING, TaskStatus.PROCESSING)


@dataclass(slots=True)
class TaskOutput:
    id: str
    format: str
    size: int
    path: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskOutput:
        return cls(
            id=str(data.get("id", "")),
            format=str(data.get("format", "")),
            size=int(data.get("size") or 0),
            path=str(data.get("path", "")),
        )


@dataclass(slots=True)
class DeliveryAttempt:
    channel: str
    status: str
    attempt_time: str
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeliveryAttempt:
        return cls(
            channel=str(data.get("channel", "")),
            status=str(data.get("status", "")),
            attempt_time=str(data.get("attempt_time", "")),
            error=data.get("error") or None,
        )


@dataclass(slots=True)
class Task:
    id: str
    url: str
    status: TaskStatus
    formats: list[str]
    created_at: str
    updated_at: str

    error_message: str | None = None
    outputs: list[TaskOutput] = field(default_factory=list)
    delivery_history: list[DeliveryAttempt] = field(default_factory=list)

    @property
    def is_pending(self) -> bool:
        return self.status.is_pending

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        # List items carry "error", detail responses "error_message".
        error = data.get("error_message") or data.get("error") or None
        return cls(
            id=str(data.get("id", "")),
            url=str(data.get("url", "")),
            status=TaskStatus.from_api(data.get("status")),
            formats=[str(f) for f in data.get("formats") or []],
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
            error_message=error,
            outputs=[TaskOutput.from_dict(o) for o in data.get("outputs") or [] if isinstance(o, dict)],
            delivery_history=[
                DeliveryAttempt.from_dict(d) for d in data.get("delivery_history") or [] if isinstance(d, dict)
            ],
        )


@dataclass(slots=True)
class TaskPage:
    items: list[Task]
    page: int
    per_page: int
    total: int
    total_pages: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskPage:
        meta = data.get("meta") or {}
        items = [Task.from_dict(t) for t in data.get("data") or [] if isinstance(t, dict)]
        return cls(
            items=items,
            page=int(meta.get("page") or 1),
            per_page=int(meta.get("per_page") or len(items)),
            total=int(meta.get("total") or len(items)),
            total_pages=int(meta.get("total_pages") or 1),
        )


@dataclass(slots=True, frozen=True)
class DeliveryConfig:
    type: str  # "email" | "webhook"
    id: str


@dataclass(slots=True)
class CaptureRequest:
    """Payload for POST /captures."""

    url: str
    formats: list[str]
    cookies: str | None = None
    delivery_config: DeliveryConfig | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"url": self.url, "formats": list(self.formats)}
        if self.cookies:
            payload["cookies"] = self.cookies
        if self.delivery_config is not None:
            payload["delivery_config"] = {"type": self.delivery_config.type, "id": self.delivery_config.id}
        return payload

# src/pagemail_client/tasks/task_api.py

"""
Async REST client for PageMail capture tasks (/api/captures).

Thin wrapper: one method per endpoint, JSON in, dataclasses out.
Non-2xx answers raise ApiError with the server's problem detail; transport
failures raise ApiConnectionError. No retries here: a failed refresh is simply
retried by the poller on its next tick.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import ApiConnectionError, ApiError, ProblemDetail
from .task_models import CaptureRequest, Task, TaskOutput, TaskPage

logger = logging.getLogger(__name__)


def _make_timeout(total_s: float) -> httpx.Timeout:
    # Connecting should fail fast; downloads may legitimately take the full budget.
    connect_s = min(5.0, total_s)
    return httpx.Timeout(total_s, connect=connect_s, pool=connect_s)


class TasksClient:
    def __init__(
            self,
            base_url: str,
            *,
            token: str | None = None,
            timeout_seconds: float = 30.0,
            transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=_make_timeout(timeout_seconds),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Any) -> TasksClient:
        return cls(
            settings.api_base_url,
            token=settings.api_token,
            timeout_seconds=settings.http_timeout_seconds,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TasksClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            logger.debug("%s %s failed: %r", method, path, exc)
            raise ApiConnectionError(str(exc) or exc.__class__.__name__) from exc

        if response.is_success:
            return response

        try:
            body = response.json()
        except ValueError:
            body = None
        problem = ProblemDetail.from_dict(body, status=response.status_code, reason=response.reason_phrase)
        raise ApiError(problem)

    async def list_tasks(self, *, page: int = 1, limit: int = 20, status: str | None = None) -> TaskPage:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        response = await self._request("GET", "/captures", params=params)
        return TaskPage.from_dict(response.json())

    async def get_task(self, task_id: str) -> Task:
        response = await self._request("GET", f"/captures/{task_id}")
        return Task.from_dict(response.json())

    async def create_task(self, request: CaptureRequest) -> Task:
        response = await self._request("POST", "/captures", json=request.to_payload())
        task = Task.from_dict(response.json())
        logger.info("Created capture task %s for %s", task.id, task.url)
        return task

    async def retry_task(self, task_id: str) -> None:
        await self._request("POST", f"/captures/{task_id}/retry")
        logger.info("Retry requested for task %s", task_id)

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/captures/{task_id}")
        logger.info("Deleted task %s", task_id)

    async def list_outputs(self, task_id: str) -> list[TaskOutput]:
        response = await self._request("GET", f"/captures/{task_id}/outputs")
        data = response.json()
        if isinstance(data, dict):
            data = data.get("data") or []
        return [TaskOutput.from_dict(o) for o in data if isinstance(o, dict)]

    async def download_output(self, task_id: str, output_id: str) -> bytes:
        response = await self._request("GET", f"/captures/{task_id}/outputs/{output_id}/download")
        return response.content

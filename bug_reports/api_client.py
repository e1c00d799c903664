import httpx
from typing import Any, Dict, Optional
from pydantic import ValidationError
from .errors import TaskSourceError
from .models import TaskPage, TaskId
import structlog

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
# Teamwork basic auth takes the API key as username with a placeholder password
BASIC_AUTH_PASSWORD = "xxx"


class TaskAPIClient:
    """Teamwork Projects v3 task endpoints."""

    def __init__(self, base_url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT, log=None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.log = log or logger

    def tasks_url(self, task_list_id: Optional[TaskId] = None) -> str:
        endpoint = f"{self.base_url}/projects/api/v3/"
        return endpoint + (f"tasklists/{task_list_id}/tasks.json" if task_list_id else "tasks.json")

    async def get_tasks(self, task_list_id: Optional[TaskId] = None, params: Optional[Dict[str, Any]] = None) -> TaskPage:
        """
        Fetches tasks (with the ``included`` side tables) from a task list,
        or from the global tasks endpoint when no list id is given.

        Raises TaskSourceError on transport failures and non-2xx responses.
        """
        url = self.tasks_url(task_list_id)
        self.log.info("Making API call", url=url, params=params)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(
                    url,
                    params=params or {},
                    auth=(self.api_key, BASIC_AUTH_PASSWORD),
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                self.log.error("Task fetch failed", url=url, status=status)
                raise TaskSourceError(f"HTTP error! status: {status}", url=url, status_code=status) from e
            except httpx.HTTPError as e:
                self.log.error("Task fetch failed", url=url, error=str(e))
                raise TaskSourceError(f"Could not reach task source: {e}", url=url) from e
            except ValueError as e:
                self.log.error("Task fetch returned invalid JSON", url=url, error=str(e))
                raise TaskSourceError("Task source returned invalid JSON", url=url) from e

        if not isinstance(data, dict):
            raise TaskSourceError("Unexpected task response format", url=url)

        included = data.get("included")
        try:
            page = TaskPage(
                tasks=data.get("tasks") or [],
                included=included if isinstance(included, dict) else {},
            )
        except ValidationError as e:
            self.log.error("Task response failed validation", url=url, error=str(e))
            raise TaskSourceError("Unexpected task response format", url=url) from e
        self.log.info("Fetched tasks", url=url, count=len(page.tasks))
        return page


class TicketAPIClient:
    """Teamwork Desk ticket search, used only for counting tickets linked to a task."""

    def __init__(self, base_url: str, api_key: str, timeout: float = DEFAULT_TIMEOUT, log=None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.log = log or logger

    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def get_ticket_count(self, task_id: TaskId) -> int:
        """
        Returns ``pagination.records`` from a ticket search filtered by task.
        A missing count is 0. Transport errors, non-2xx statuses, bad JSON and
        non-numeric counts are raised to the caller.
        """
        self.log.debug("Searching tickets for task", task_id=task_id)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.base_url}/desk/api/v2/search/tickets.json",
                params={"task": task_id},
                headers={"Content-Type": "application/json", **self._get_auth_header()},
            )
            response.raise_for_status()
            data = response.json()

        pagination = data.get("pagination") if isinstance(data, dict) else None
        if not isinstance(pagination, dict):
            return 0
        records = pagination.get("records")
        if records is None:
            return 0
        if isinstance(records, bool) or not isinstance(records, (int, float, str)):
            raise ValueError(f"Unexpected ticket record count: {records!r}")
        return int(records)

"""
Report definitions.

Each report decides which tasks to ask the task source for, which of the
enriched tasks make it into the message and in what order, and which
webhook receives it. Rendering and publishing are shared.
"""
import datetime
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from .config import Settings
from .formatting import get_date_in_past
from .models import EnrichedTask

TOP_REPORT_LIMIT = 10
TOP_REPORT_PAGE_SIZE = 100


def base_api_params(created_before: str, assignee_team_id: int) -> Dict[str, Any]:
    return {
        "createdBefore": created_before,
        "assigneeTeamIds": assignee_team_id,
        "skipCounts": False,
        "includeCommentStats": True,
        "includeCompanyUserIds": True,
        "includeCustomFields": True,
        "getSubTasks": True,
        "createdFilter": "custom",
        "orderBy": "createdAt",
        "orderMode": "asc",
    }


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def select_stale_tasks(tasks: List[EnrichedTask], cutoff: datetime.datetime) -> List[EnrichedTask]:
    """
    Keeps tasks created before ``cutoff``, oldest first. Tasks without a
    creation date were already filtered by the API, so they are kept and
    listed last.
    """
    cutoff = _as_utc(cutoff)
    kept = [t for t in tasks if t.created_at is None or _as_utc(t.created_at) < cutoff]
    return sorted(kept, key=lambda t: (t.created_at is None, _as_utc(t.created_at) if t.created_at else cutoff))


def select_top_tasks(tasks: List[EnrichedTask], limit: int = TOP_REPORT_LIMIT) -> List[EnrichedTask]:
    """Highest bug score first (stable for ties), truncated to ``limit``."""
    return sorted(tasks, key=lambda t: t.bug_score or 0, reverse=True)[:limit]


@dataclass(frozen=True)
class Report:
    name: str
    title: str
    api_params: Dict[str, Any]
    select: Callable[[List[EnrichedTask]], List[EnrichedTask]]
    webhook_url: Optional[str]

    def build_message(self, table: str) -> str:
        return f":radioactive_sign: @online here are the **{self.title}:** \n \n \n {table}"


def stale_report(settings: Settings, now: Optional[datetime.datetime] = None) -> Report:
    now = _as_utc(now or datetime.datetime.now(datetime.timezone.utc))
    days = settings.stale_after_days
    cutoff = now - datetime.timedelta(days=days)
    return Report(
        name="stale",
        title=f"Tasks Over {days} Days Old",
        api_params=base_api_params(get_date_in_past(days, now), settings.assignee_team_id),
        select=lambda tasks: select_stale_tasks(tasks, cutoff),
        webhook_url=settings.stale_report_webhook_url,
    )


def top_report(settings: Settings, now: Optional[datetime.datetime] = None) -> Report:
    now = _as_utc(now or datetime.datetime.now(datetime.timezone.utc))
    params = base_api_params(get_date_in_past(0, now), settings.assignee_team_id)
    params.update(limit=TOP_REPORT_PAGE_SIZE, pageSize=TOP_REPORT_PAGE_SIZE)
    return Report(
        name="top",
        title="Top Ten Open Bugs",
        api_params=params,
        select=select_top_tasks,
        webhook_url=settings.top_report_webhook_url,
    )


REPORTS = {
    "stale": stale_report,
    "top": top_report,
}

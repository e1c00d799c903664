import datetime
from typing import Callable, Iterable, List, Optional, Sequence
from .models import EnrichedTask

TASK_TABLE_HEADERS = [
    "Name",
    "Date Created",
    "Product Area",
    "Impact",
    "Priority",
    "Desk Tickets",
    "Bug Score",
]

PRIORITY_BADGES = {
    "high": ":heart: High",
    "medium": ":yellow_heart: Medium",
    "low": ":green_heart: Low",
}


def render_table(headers: Sequence = (), rows: Iterable[Sequence] = ()) -> str:
    """
    Renders a pipe-delimited markdown table.

    Cell content is not escaped, so a literal "|" will break the layout.
    With no headers the output is the degenerate "|  |\\n|  |".
    """
    separators = ["---" for _ in headers]
    lines = [headers, separators, *rows]
    return "\n".join(f"| {' | '.join(str(cell) for cell in line)} |" for line in lines)


def format_priority(priority: Optional[str]) -> str:
    if not priority:
        return "No Priority"
    return PRIORITY_BADGES.get(priority, "")


def format_date(value: Optional[datetime.datetime]) -> str:
    # Day-first without zero padding, e.g. 5/1/2023
    if value is None:
        return "-"
    return f"{value.day}/{value.month}/{value.year}"


def get_date_in_past(days_ago: int, now: Optional[datetime.datetime] = None) -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. 2026-07-21T09:15:00.000Z."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=datetime.timezone.utc)
    past = (now - datetime.timedelta(days=days_ago)).astimezone(datetime.timezone.utc)
    return past.strftime("%Y-%m-%dT%H:%M:%S.") + f"{past.microsecond // 1000:03d}Z"


def task_link(task: EnrichedTask, base_url: str) -> str:
    return f"[{task.name}]({base_url.rstrip('/')}/app/tasks/{task.id})"


def task_row(task: EnrichedTask, base_url: str) -> List:
    return [
        task_link(task, base_url),
        format_date(task.created_at),
        task.product_area or "-",
        task.impact or "-",
        format_priority(task.priority),
        task.ticket_count or "-",
        task.bug_score or "-",
    ]


def render_task_table(
    tasks: Iterable[EnrichedTask],
    base_url: str,
    row_mapper: Callable[[EnrichedTask, str], Sequence] = task_row,
    headers: Sequence = TASK_TABLE_HEADERS,
) -> str:
    return render_table(headers, [row_mapper(task, base_url) for task in tasks])

import asyncio
from typing import Any, Dict, List, Optional, Tuple
import structlog
from .api_client import TaskAPIClient, TicketAPIClient
from .custom_fields import IMPACT_FIELD, PRODUCT_AREA_FIELD, find_field_value, group_fields_by_task
from .models import EnrichedTask, Task, TaskId
from .scoring import calculate_bug_score
from .throttle import BatchThrottle

logger = structlog.get_logger()


async def enrich_with_ticket_counts(
    tasks: List[Task],
    ticket_client: TicketAPIClient,
    throttle: Optional[BatchThrottle] = None,
    log=None,
) -> List[Tuple[Task, Optional[int]]]:
    """
    Pairs each task with the number of Desk tickets linked to it.

    Tasks are processed in throttled batches, concurrently within a batch.
    A failed lookup gives that task a count of None and leaves its siblings
    alone. Output order matches input order.
    """
    throttle = throttle or BatchThrottle()
    log = log or logger

    async def count_tickets(task: Task) -> Tuple[Task, Optional[int]]:
        if not task.has_desk_tickets:
            return task, 0
        try:
            count = await ticket_client.get_ticket_count(task.id)
        except Exception as e:
            log.warning("Error fetching ticket count", task_id=task.id, error=str(e), error_type=type(e).__name__)
            return task, None
        log.info("Ticket count for task", task_id=task.id, ticket_count=count)
        return task, count

    enriched: List[Tuple[Task, Optional[int]]] = []
    for index, batch in enumerate(throttle.batches(tasks)):
        if index:
            await throttle.pause()
        # gather keeps results in submission order
        enriched.extend(await asyncio.gather(*[count_tickets(task) for task in batch]))
    return enriched


def _as_text(value: Any) -> Optional[str]:
    # Custom field values are free-form JSON; anything that is not null is shown as text
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def build_enriched_task(task: Task, fields_by_task: Dict[str, list], ticket_count: Optional[int]) -> EnrichedTask:
    custom_fields = fields_by_task.get(str(task.id), [])

    impact = _as_text(find_field_value(custom_fields, IMPACT_FIELD))
    product_area = _as_text(find_field_value(custom_fields, PRODUCT_AREA_FIELD))

    return EnrichedTask(
        **task.model_dump(),
        custom_fields=custom_fields,
        impact=impact,
        product_area=product_area,
        ticket_count=ticket_count,
        bug_score=calculate_bug_score(impact=impact, priority=task.priority, ticket_count=ticket_count),
    )


async def get_enriched_tasks(
    task_client: TaskAPIClient,
    ticket_client: TicketAPIClient,
    task_list_id: Optional[TaskId] = None,
    api_params: Optional[Dict[str, Any]] = None,
    throttle: Optional[BatchThrottle] = None,
    log=None,
) -> List[EnrichedTask]:
    """
    Fetch -> join custom fields -> count tickets -> score.

    A failed fetch raises TaskSourceError; there is no partial result.
    """
    log = log or logger

    page = await task_client.get_tasks(task_list_id, api_params)
    fields_by_task = group_fields_by_task(
        page.included.get("customfields"),
        page.included.get("customfieldTasks"),
    )
    counted = await enrich_with_ticket_counts(page.tasks, ticket_client, throttle=throttle, log=log)

    enriched = [build_enriched_task(task, fields_by_task, count) for task, count in counted]
    log.info(
        "Enriched tasks",
        count=len(enriched),
        failed_ticket_lookups=sum(1 for t in enriched if t.ticket_count is None),
    )
    return enriched

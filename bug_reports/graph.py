from typing import List, Optional, TypedDict
from langgraph.graph import StateGraph, END
from .api_client import TaskAPIClient, TicketAPIClient
from .chat_client import ChatClient
from .config import Settings
from .enrichment import get_enriched_tasks
from .errors import BugReportError
from .formatting import render_task_table
from .models import EnrichedTask
from .reports import Report
from .throttle import BatchThrottle
import structlog

logger = structlog.get_logger()


class ReportState(TypedDict):
    tasks: List[EnrichedTask]
    message: Optional[str]
    sent: bool
    error: Optional[str]


def initial_state() -> ReportState:
    return {"tasks": [], "message": None, "sent": False, "error": None}


def create_report_graph(
    report: Report,
    settings: Settings,
    task_client: Optional[TaskAPIClient] = None,
    ticket_client: Optional[TicketAPIClient] = None,
    chat_client: Optional[ChatClient] = None,
    throttle: Optional[BatchThrottle] = None,
    log=None,
):
    """
    Builds the fetch -> select -> render -> publish workflow for one report.

    Fatal failures are recorded in ``state["error"]``; the remaining nodes
    then pass the state through untouched.
    """
    log = (log or logger).bind(report=report.name)
    task_client = task_client or TaskAPIClient(
        settings.base_url, settings.task_api_key, timeout=settings.request_timeout, log=log
    )
    ticket_client = ticket_client or TicketAPIClient(
        settings.base_url, settings.ticket_api_key, timeout=settings.request_timeout, log=log
    )
    chat_client = chat_client or ChatClient(timeout=settings.request_timeout, log=log)
    throttle = throttle or BatchThrottle(settings.ticket_batch_size, settings.ticket_batch_delay)

    async def fetch_tasks_node(state: ReportState):
        log.info("Fetching enriched tasks", task_list_id=settings.task_list_id)
        try:
            tasks = await get_enriched_tasks(
                task_client,
                ticket_client,
                task_list_id=settings.task_list_id,
                api_params=report.api_params,
                throttle=throttle,
                log=log,
            )
        except BugReportError as e:
            log.error("Fetching tasks failed", error=str(e))
            return {**state, "error": f"Fetching tasks failed: {e}"}
        except Exception as e:
            log.exception("Unexpected error while enriching tasks", error=str(e))
            return {**state, "error": f"Enriching tasks failed: {e}"}
        return {**state, "tasks": tasks}

    async def select_tasks_node(state: ReportState):
        if state.get("error"):
            return state
        selected = report.select(state["tasks"])
        log.info("Selected tasks for report", fetched=len(state["tasks"]), selected=len(selected))
        return {**state, "tasks": selected}

    async def build_message_node(state: ReportState):
        if state.get("error"):
            return state
        table = render_task_table(state["tasks"], settings.base_url)
        message = report.build_message(table)
        log.info("Report message built", rows=len(state["tasks"]), size_bytes=len(message))
        return {**state, "message": message}

    async def send_message_node(state: ReportState):
        if state.get("error") or not state.get("message"):
            log.warning("Skipping message send due to error or missing content", error=state.get("error"))
            return state
        try:
            await chat_client.send_message(state["message"], report.webhook_url)
        except BugReportError as e:
            return {**state, "error": f"Message delivery failed: {e}"}
        return {**state, "sent": True}

    workflow = StateGraph(ReportState)

    workflow.add_node("fetch_tasks", fetch_tasks_node)
    workflow.add_node("select_tasks", select_tasks_node)
    workflow.add_node("build_message", build_message_node)
    workflow.add_node("send_message", send_message_node)

    workflow.set_entry_point("fetch_tasks")
    workflow.add_edge("fetch_tasks", "select_tasks")
    workflow.add_edge("select_tasks", "build_message")
    workflow.add_edge("build_message", "send_message")
    workflow.add_edge("send_message", END)

    return workflow.compile()

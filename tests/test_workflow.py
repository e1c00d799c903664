import datetime
import json
import pytest
import respx
from httpx import Response
from bug_reports.config import Settings
from bug_reports.graph import create_report_graph, initial_state
from bug_reports.main import run_report
from bug_reports.reports import stale_report, top_report
from bug_reports.throttle import BatchThrottle

BASE_URL = "https://test.teamwork.com"
STALE_HOOK = "https://chat.example.com/validation"
TOP_HOOK = "https://chat.example.com/core"


@pytest.fixture
def settings():
    return Settings(
        base_url=BASE_URL,
        task_api_key="task_key",
        ticket_api_key="desk_key",
        task_list_id="123",
        stale_report_webhook_url=STALE_HOOK,
        top_report_webhook_url=TOP_HOOK,
        ticket_batch_delay=0,
    )


def days_ago(n):
    return (datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=n)).isoformat()


def tasks_payload(tasks, assignments=None):
    return {
        "tasks": tasks,
        "included": {
            "customfields": {"1": {"name": "Impact"}, "2": {"name": "Product Area"}},
            "customfieldTasks": assignments or {},
        },
    }


@pytest.mark.asyncio
async def test_top_report_publishes_highest_scores_first(settings):
    tasks = [
        {"id": 1, "name": "Low Score Bug", "createdAt": days_ago(10), "priority": "low", "hasDeskTickets": False},
        {"id": 2, "name": "High Score Bug", "createdAt": days_ago(20), "priority": "high", "hasDeskTickets": True},
        {"id": 3, "name": "Medium Score Bug", "createdAt": days_ago(30), "priority": "medium", "hasDeskTickets": False},
    ]
    assignments = {
        "a": {"taskId": 1, "customfieldId": 1, "value": "Level 4"},
        "b": {"taskId": 2, "customfieldId": 1, "value": "Level 1"},
        "c": {"taskId": 2, "customfieldId": 2, "value": "Backend"},
        "d": {"taskId": 3, "customfieldId": 1, "value": "Level 2"},
    }

    async with respx.mock() as respx_mock:
        fetch = respx_mock.get(f"{BASE_URL}/projects/api/v3/tasklists/123/tasks.json").mock(
            return_value=Response(200, json=tasks_payload(tasks, assignments))
        )
        respx_mock.get(f"{BASE_URL}/desk/api/v2/search/tickets.json").mock(
            return_value=Response(200, json={"pagination": {"records": 5}})
        )
        chat = respx_mock.post(TOP_HOOK).mock(return_value=Response(200, text="ok"))

        sent = await run_report("top", settings)

        assert fetch.calls.last.request.url.params["pageSize"] == "100"
        body = json.loads(chat.calls.last.request.content)["body"]

    assert sent is True
    assert body.startswith(":radioactive_sign: @online here are the **Top Ten Open Bugs:**")
    lines = body.split(" \n \n \n ", 1)[1].split("\n")
    assert len(lines) == 3 + 2
    assert "[High Score Bug](https://test.teamwork.com/app/tasks/2)" in lines[2]
    assert lines[2].endswith("| Backend | Level 1 | :heart: High | 5 | 15 |")
    assert "Medium Score Bug" in lines[3] and lines[3].endswith("| 4 |")
    assert "Low Score Bug" in lines[4] and lines[4].endswith("| 1 |")


@pytest.mark.asyncio
async def test_stale_report_keeps_only_old_tasks_in_date_order(settings):
    tasks = [
        {"id": 30, "name": "Recent", "createdAt": days_ago(30), "priority": "high"},
        {"id": 200, "name": "Ancient", "createdAt": days_ago(200), "priority": "low"},
        {"id": 120, "name": "Old", "createdAt": days_ago(120)},
    ]

    async with respx.mock() as respx_mock:
        fetch = respx_mock.get(f"{BASE_URL}/projects/api/v3/tasklists/123/tasks.json").mock(
            return_value=Response(200, json=tasks_payload(tasks))
        )
        chat = respx_mock.post(STALE_HOOK).mock(return_value=Response(200, json={"ok": True}))

        sent = await run_report("stale", settings)

        params = fetch.calls.last.request.url.params
        assert params["orderMode"] == "asc"
        assert "pageSize" not in params
        body = json.loads(chat.calls.last.request.content)["body"]

    assert sent is True
    assert "**Tasks Over 90 Days Old:**" in body
    assert "Recent" not in body
    assert body.index("[Ancient](") < body.index("[Old](")


@pytest.mark.asyncio
async def test_fetch_failure_sends_nothing(settings):
    async with respx.mock(assert_all_called=False) as respx_mock:
        respx_mock.get(f"{BASE_URL}/projects/api/v3/tasklists/123/tasks.json").mock(return_value=Response(500))
        chat = respx_mock.post(TOP_HOOK)

        app = create_report_graph(top_report(settings), settings, throttle=BatchThrottle(delay_seconds=0))
        final_state = await app.ainvoke(initial_state())

        assert not chat.called

    assert "status: 500" in final_state["error"]
    assert final_state["message"] is None
    assert final_state["sent"] is False


@pytest.mark.asyncio
async def test_publish_failure_fails_the_run(settings):
    async with respx.mock() as respx_mock:
        respx_mock.get(f"{BASE_URL}/projects/api/v3/tasklists/123/tasks.json").mock(
            return_value=Response(200, json=tasks_payload([]))
        )
        respx_mock.post(STALE_HOOK).mock(return_value=Response(502, text="bad gateway"))

        app = create_report_graph(stale_report(settings), settings)
        final_state = await app.ainvoke(initial_state())

        assert await run_report("stale", settings) is False

    assert final_state["error"].startswith("Message delivery failed")
    # an empty report is still a valid table
    assert final_state["message"].endswith("| --- | --- | --- | --- | --- | --- | --- |")


@pytest.mark.asyncio
async def test_unexpected_fetch_error_is_recorded_in_state(settings):
    class BrokenTaskClient:
        async def get_tasks(self, task_list_id=None, params=None):
            raise RuntimeError("unexpected payload")

    async with respx.mock(assert_all_called=False) as respx_mock:
        chat = respx_mock.post(TOP_HOOK)

        app = create_report_graph(top_report(settings), settings, task_client=BrokenTaskClient())
        final_state = await app.ainvoke(initial_state())

        assert await run_report("top", settings, task_client=BrokenTaskClient()) is False
        assert not chat.called

    assert "unexpected payload" in final_state["error"]
    assert final_state["sent"] is False

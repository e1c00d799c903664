import pytest
from pydantic import ValidationError
from bug_reports.config import Settings
from bug_reports.errors import ConfigError
from bug_reports.main import main

REQUIRED = {
    "TASK_SOURCE_BASE_URL": "https://acme.teamwork.com/",
    "TASK_API_KEY": "task_key",
    "TICKET_API_KEY": "desk_key",
}


def test_from_env_reads_recognised_options():
    env = {
        **REQUIRED,
        "TASK_LIST_ID": "123",
        "STALE_REPORT_WEBHOOK_URL": "https://chat/stale",
        "TOP_REPORT_WEBHOOK_URL": "https://chat/top",
        "TICKET_BATCH_SIZE": "3",
        "TICKET_BATCH_DELAY": "0",
        "REQUEST_TIMEOUT": "12.5",
        "UNRELATED": "ignored",
    }

    settings = Settings.from_env(env)

    assert settings.base_url == "https://acme.teamwork.com"
    assert settings.task_list_id == "123"
    assert settings.stale_report_webhook_url == "https://chat/stale"
    assert settings.top_report_webhook_url == "https://chat/top"
    assert settings.ticket_batch_size == 3
    assert settings.ticket_batch_delay == 0
    assert settings.request_timeout == 12.5


def test_defaults():
    settings = Settings.from_env(REQUIRED)
    assert settings.task_list_id is None
    assert settings.assignee_team_id == 9
    assert settings.stale_after_days == 90
    assert settings.ticket_batch_size == 5
    assert settings.ticket_batch_delay == 0.5


def test_missing_required_values():
    with pytest.raises(ConfigError) as excinfo:
        Settings.from_env({"TASK_API_KEY": "x", "TICKET_API_KEY": ""})
    assert "TASK_SOURCE_BASE_URL" in str(excinfo.value)
    assert "TICKET_API_KEY" in str(excinfo.value)


def test_invalid_values():
    with pytest.raises(ConfigError):
        Settings.from_env({**REQUIRED, "TICKET_BATCH_SIZE": "zero"})
    with pytest.raises(ConfigError):
        Settings.from_env({**REQUIRED, "TICKET_BATCH_SIZE": "0"})


def test_settings_are_frozen():
    settings = Settings.from_env(REQUIRED)
    with pytest.raises(ValidationError):
        settings.base_url = "https://elsewhere"


def test_main_exits_non_zero_without_configuration(monkeypatch):
    for name in REQUIRED:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("bug_reports.config.load_dotenv", lambda: False)
    monkeypatch.setattr("bug_reports.main.configure_logging", lambda *args, **kwargs: None)

    assert main(["top"]) == 1

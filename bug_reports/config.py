import os
from typing import Mapping, Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from .errors import ConfigError

# Environment variable -> Settings field
ENV_VARS = {
    "TASK_SOURCE_BASE_URL": "base_url",
    "TASK_API_KEY": "task_api_key",
    "TICKET_API_KEY": "ticket_api_key",
    "TASK_LIST_ID": "task_list_id",
    "STALE_REPORT_WEBHOOK_URL": "stale_report_webhook_url",
    "TOP_REPORT_WEBHOOK_URL": "top_report_webhook_url",
    "ASSIGNEE_TEAM_ID": "assignee_team_id",
    "STALE_AFTER_DAYS": "stale_after_days",
    "REQUEST_TIMEOUT": "request_timeout",
    "TICKET_BATCH_SIZE": "ticket_batch_size",
    "TICKET_BATCH_DELAY": "ticket_batch_delay",
    "LOG_LEVEL": "log_level",
    "LOG_FORMAT": "log_format",
}


class Settings(BaseModel):
    """Process configuration, built once at startup and passed into each report run."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    task_api_key: str
    ticket_api_key: str
    task_list_id: Optional[str] = None
    stale_report_webhook_url: Optional[str] = None
    top_report_webhook_url: Optional[str] = None
    assignee_team_id: int = 9
    stale_after_days: int = Field(default=90, ge=0)
    request_timeout: float = Field(default=30.0, gt=0)
    ticket_batch_size: int = Field(default=5, ge=1)
    ticket_batch_delay: float = Field(default=0.5, ge=0)
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Reads settings from ``env`` (defaults to the process environment,
        after loading a ``.env`` file if present). Empty values count as unset.
        """
        if env is None:
            if dotenv:
                load_dotenv()
            env = os.environ

        values = {field: env[name] for name, field in ENV_VARS.items() if env.get(name)}
        missing = [
            name for name in ("TASK_SOURCE_BASE_URL", "TASK_API_KEY", "TICKET_API_KEY")
            if ENV_VARS[name] not in values
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

class BugReportError(Exception):
    """Base class for failures that abort a report run."""


class ConfigError(BugReportError):
    """Raised when required configuration is missing or invalid."""


class TaskSourceError(BugReportError):
    """Raised when the task list cannot be fetched."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PublishError(BugReportError):
    """Raised when the chat webhook rejects or never receives the message."""

    def __init__(self, message: str, url: str = None, status_code: int = None, body: str = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body

import httpx
import structlog
from .errors import PublishError

logger = structlog.get_logger()


class ChatClient:
    """Posts markdown messages to a Teamwork Chat incoming webhook."""

    def __init__(self, timeout: float = 30.0, log=None):
        self.timeout = timeout
        self.log = log or logger

    async def send_message(self, message: str, url: str):
        """
        Sends ``{"body": message}`` to the webhook. Returns the decoded JSON
        response, or the raw text when the webhook does not answer with JSON.

        Raises PublishError when the webhook is unreachable or rejects the post.
        """
        if not url:
            raise PublishError("No webhook URL configured for this report")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    json={"body": message},
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            self.log.error("Error sending message", url=url, error=str(e))
            raise PublishError(f"Could not reach chat webhook: {e}", url=url) from e

        if response.is_error:
            self.log.error(
                "Error sending message",
                url=url,
                status=response.status_code,
                body=response.text,
            )
            raise PublishError(
                f"Chat webhook returned {response.status_code}",
                url=url,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            data = response.text
        self.log.info("Message sent successfully", status=response.status_code, response=data)
        return data

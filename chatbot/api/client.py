"""HTTP client for the conversational backend.

POST /chat - forward one user message, returns the agent answer
POST /health - per-subsystem availability

Every transport failure, non-2xx status or malformed body is raised as
BackendError so callers only handle one exception type.
"""

import requests
import structlog
from pydantic import ValidationError

from chatbot.api.schemas import ChatRequest, ChatResponse, HealthResponse

logger = structlog.get_logger(__name__)


class BackendError(Exception):
    """The backend could not produce a usable answer."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class BackendClient:
    """Thin wrapper over requests with explicit timeouts and no retries."""

    def __init__(self, base_url: str, chat_timeout: float = 30, health_timeout: float = 3):
        self.base_url = base_url.rstrip("/")
        self.chat_timeout = chat_timeout
        self.health_timeout = health_timeout

    @property
    def chat_endpoint(self) -> str:
        return f"{self.base_url}/chat"

    @property
    def health_endpoint(self) -> str:
        return f"{self.base_url}/health"

    def chat(self, user_id: str, message: str) -> ChatResponse:
        """Send one message and return the parsed answer.

        Args:
            user_id: Session identifier, also the persistence owner key.
            message: Text to send (already enhanced).

        Returns:
            Parsed ChatResponse.

        Raises:
            BackendError: On timeout, connection failure, non-2xx or bad payload.
        """
        body = ChatRequest(user_id=user_id, message=message).model_dump()
        logger.debug("backend.chat", url=self.chat_endpoint, msg_len=len(message))
        data = self._post(self.chat_endpoint, body, self.chat_timeout)

        try:
            return ChatResponse.model_validate(data)
        except ValidationError as e:
            logger.error("backend.chat_invalid_payload", error=str(e))
            raise BackendError("Invalid response from backend") from e

    def health(self) -> HealthResponse:
        """Fetch subsystem statuses.

        Raises:
            BackendError: Same conditions as chat().
        """
        data = self._post(self.health_endpoint, None, self.health_timeout)

        try:
            return HealthResponse.model_validate(data)
        except ValidationError as e:
            raise BackendError("Invalid health payload") from e

    def _post(self, url: str, body: dict | None, timeout: float) -> dict:
        try:
            resp = requests.post(url, json=body, timeout=timeout)
        except requests.Timeout as e:
            logger.warning("backend.timeout", url=url, threshold=timeout)
            raise BackendError(f"Request timed out after {timeout:g}s") from e
        except requests.ConnectionError as e:
            logger.warning("backend.connection_error", url=url)
            raise BackendError("Cannot connect to the backend") from e
        except requests.RequestException as e:
            logger.warning("backend.request_failed", url=url, error=str(e))
            raise BackendError(f"Request failed: {e}") from e

        if not resp.ok:
            logger.warning("backend.http_error", url=url, status=resp.status_code)
            raise BackendError(f"API error: {resp.status_code}", status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise BackendError("Backend returned a non-JSON body") from e

"""Backend health polling.

Each check is one independent request; there is no retry or backoff. A failed
check marks every subsystem offline.
"""

import structlog

from chatbot.api.client import BackendClient, BackendError
from chatbot.api.schemas import SERVICES

logger = structlog.get_logger(__name__)


def all_offline() -> dict[str, str]:
    return {name: "offline" for name in SERVICES}


class HealthMonitor:
    """Reports per-subsystem availability of the backend."""

    def __init__(self, client: BackendClient):
        self._client = client

    def check(self) -> dict[str, str]:
        """Query the health endpoint.

        Returns:
            Full status mapping for chat, products and outlets.
        """
        try:
            health = self._client.health()
        except BackendError as e:
            logger.warning("health.check_failed", error=e.reason)
            return all_offline()

        statuses = health.services.model_dump()
        logger.info("health.checked", **statuses)
        return statuses

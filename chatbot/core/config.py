"""Client configuration read from the environment.

Call load_dotenv() at the entry point before ClientConfig.from_env().
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientConfig:
    """Runtime settings.

    Attributes:
        api_url: Backend base address.
        chat_timeout: Seconds before a /chat call is abandoned.
        health_timeout: Seconds before a /health call is abandoned.
        activity_delay_ms: Pause before the backend call so activity entries stay visible.
        database_url: SQLAlchemy URL of the local key-value store.
    """
    api_url: str = "http://localhost:8000"
    chat_timeout: float = 30.0
    health_timeout: float = 3.0
    activity_delay_ms: int = 300
    database_url: str = "sqlite:///chatbot.sqlite"

    @classmethod
    def from_env(cls) -> "ClientConfig":
        return cls(
            api_url=os.environ.get("API_URL", cls.api_url),
            chat_timeout=float(os.environ.get("CHAT_TIMEOUT", str(cls.chat_timeout))),
            health_timeout=float(os.environ.get("HEALTH_TIMEOUT", str(cls.health_timeout))),
            activity_delay_ms=int(os.environ.get("ACTIVITY_DELAY_MS", str(cls.activity_delay_ms))),
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
        )

"""
Notification sinks for the presentation layer.

Workflows report outcomes through a Notifier: transient success/error
messages plus "close the form" and "refresh the list" signals. Every call is
fire-and-forget; nothing the sink returns is used.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class Notifier(ABC):

    @abstractmethod
    def success(self, message: str) -> None:
        ...

    @abstractmethod
    def error(self, message: str) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def refresh(self) -> None:
        ...


class LoggingNotifier(Notifier):
    """Sink used when no caller is listening."""

    def success(self, message: str) -> None:
        logger.info("[notify] %s", message)

    def error(self, message: str) -> None:
        logger.warning("[notify] %s", message)

    def close(self) -> None:
        logger.debug("[notify] close requested")

    def refresh(self) -> None:
        logger.debug("[notify] refresh requested")


class CollectingNotifier(Notifier):
    """Buffers notifications so an HTTP response can hand them to the client."""

    def __init__(self):
        self.messages: List[Dict[str, str]] = []
        self.close_requested = False
        self.refresh_requested = False

    def success(self, message: str) -> None:
        self.messages.append({"level": "success", "message": message})

    def error(self, message: str) -> None:
        self.messages.append({"level": "error", "message": message})

    def close(self) -> None:
        self.close_requested = True

    def refresh(self) -> None:
        self.refresh_requested = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notifications": self.messages,
            "close": self.close_requested,
            "refresh": self.refresh_requested,
        }

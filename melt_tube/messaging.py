"""In-process message bus relaying commands to the service and events to listeners."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class CommandType(str, Enum):
    """Inbound commands."""

    START_SUMMARY = "START_SUMMARY"
    CANCEL = "CANCEL"


class EventType(str, Enum):
    """Outbound events."""

    PROGRESS = "PROGRESS"
    ERROR = "ERROR"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True)
class Command:
    """A request sent to the service."""

    type: CommandType
    source: str | None = None  # START_SUMMARY: URL, video id or file path
    job_id: int | None = None  # CANCEL


@dataclass(frozen=True)
class Event:
    """A status or result update for one job."""

    type: EventType
    job_id: int
    text: str

    @classmethod
    def progress(cls, job_id: int, detail: str) -> "Event":
        return cls(EventType.PROGRESS, job_id, detail)

    @classmethod
    def error(cls, job_id: int, message: str) -> "Event":
        return cls(EventType.ERROR, job_id, message)

    @classmethod
    def complete(cls, job_id: int, summary: str) -> "Event":
        return cls(EventType.COMPLETE, job_id, summary)

    @property
    def detail(self) -> str:
        return self.text

    @property
    def message(self) -> str:
        return self.text

    @property
    def summary(self) -> str:
        return self.text


Listener = Callable[[Event], Awaitable[None] | None]
CommandHandler = Callable[[Command], Awaitable[Any]]


class MessageBus:
    """
    Fan-out for events and a single handler per command type.

    Listeners may be plain functions or coroutines. A failing listener is
    logged and does not prevent delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._handlers: dict[CommandType, CommandHandler] = {}

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an event listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def emit(self, event: Event) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Event listener failed on %s for job %d", event.type.value, event.job_id)

    def register(self, command_type: CommandType, handler: CommandHandler) -> None:
        self._handlers[command_type] = handler

    async def dispatch(self, command: Command) -> Any:
        """Deliver a command to its handler and return the handler's result."""
        handler = self._handlers.get(command.type)
        if handler is None:
            raise ValueError(f"No handler registered for {command.type.value}")
        return await handler(command)
